import asyncio

import pytest

from geolocate.clock import Clock
from geolocate.context import LocationContext
from geolocate.models import LocationFix, ServiceStatus
from geolocate.service import LocationService


class ManualClock(Clock):
    """Virtual time. Every suspension advances the clock and yields once."""

    def __init__(self, frame_duration: float = 1.0):
        self.now = 0.0
        self.frame_duration = frame_duration
        self.ticks = 0
        self.frames = 0

    def time(self) -> float:
        return self.now

    async def tick(self):
        self.now += 1
        self.ticks += 1
        await asyncio.sleep(0)

    async def frame(self):
        self.now += self.frame_duration
        self.frames += 1
        await asyncio.sleep(0)


class FakeLocationService(LocationService):
    """
    Location service following a status script.

    `statuses[n]` is the status `n` ticks after start, the last entry holds
    from then on. `fix` may be a callable of the clock time.
    """

    def __init__(self, clock, statuses=(ServiceStatus.RUNNING,), fix=None, enabled=True):
        self.clock = clock
        self.statuses = list(statuses)
        self.fix = fix or LocationFix(52.0, 4.0, 1.0, 5.0)
        self.enabled = enabled

        self.started_at = None
        self.starts = []
        self.stops = 0

    def start(self, desired_accuracy, min_update_distance):
        self.starts.append((desired_accuracy, min_update_distance))
        if self.started_at is None:
            self.started_at = self.clock.time()

    def stop(self):
        self.stops += 1
        self.started_at = None

    @property
    def status(self):
        if self.started_at is None:
            return ServiceStatus.STOPPED
        index = int(self.clock.time() - self.started_at)
        return self.statuses[min(index, len(self.statuses) - 1)]

    @property
    def last_fix(self):
        if callable(self.fix):
            return self.fix(self.clock.time())
        return self.fix

    @property
    def is_enabled_by_user(self):
        return self.enabled


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def service(clock):
    return FakeLocationService(clock)


@pytest.fixture
def context(service):
    return LocationContext(service)
