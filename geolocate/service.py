import logging
from abc import ABC, abstractmethod

from geolocate.clock import Clock
from geolocate.models import LocationFix, PermissionKind, ServiceStatus

logger = logging.getLogger(__name__)


class LocationService(ABC):
    """The device location subsystem. Owns the service status."""

    @abstractmethod
    def start(self, desired_accuracy: float, min_update_distance: float):
        pass

    @abstractmethod
    def stop(self):
        pass

    @property
    @abstractmethod
    def status(self) -> ServiceStatus:
        pass

    @property
    @abstractmethod
    def last_fix(self) -> LocationFix:
        pass

    @property
    @abstractmethod
    def is_enabled_by_user(self) -> bool:
        pass


class PermissionService(ABC):
    """Platform permission check and request."""

    @abstractmethod
    def has_permission(self, kind: PermissionKind) -> bool:
        pass

    @abstractmethod
    def request_permission(self, kind: PermissionKind):
        """Ask for a permission. The answer is observed with `has_permission`."""
        pass


class SimulatedLocationService(LocationService):
    """
    Location service that reports a fixed position.

    The service stays initializing for `initialization_ticks` after `start`,
    then becomes running, or failed when `fail` is set.

    Args:
        clock (Clock): The clock used to measure initialization time.
        fix (LocationFix, optional): The position to report.
        initialization_ticks (float, optional): Ticks spent initializing. Defaults to 1.
        fail (bool, optional): Fail instead of running. Defaults to False.
        enabled (bool, optional): Whether location access is enabled. Defaults to True.
    """

    def __init__(
        self,
        clock: Clock,
        fix: LocationFix | None = None,
        initialization_ticks: float = 1,
        fail: bool = False,
        enabled: bool = True,
    ):
        self._clock = clock
        self._fix = fix or LocationFix.zero()
        self._initialization_ticks = initialization_ticks
        self._fail = fail
        self._enabled = enabled

        self._started_at = None
        self.start_count = 0
        self.stop_count = 0

    def start(self, desired_accuracy: float, min_update_distance: float):
        self.start_count += 1
        if self._started_at is None:
            logger.debug(
                f"Simulated location service started (accuracy={desired_accuracy}m, distance={min_update_distance}m)"
            )
            self._started_at = self._clock.time()

    def stop(self):
        self.stop_count += 1
        if self._started_at is not None:
            logger.debug("Simulated location service stopped")
        self._started_at = None

    @property
    def status(self) -> ServiceStatus:
        if self._started_at is None:
            return ServiceStatus.STOPPED
        if self._clock.time() - self._started_at < self._initialization_ticks:
            return ServiceStatus.INITIALIZING
        if self._fail:
            return ServiceStatus.FAILED
        return ServiceStatus.RUNNING

    @property
    def last_fix(self) -> LocationFix:
        return self._fix

    @property
    def is_enabled_by_user(self) -> bool:
        return self._enabled
