import asyncio
import logging
from typing import Callable

from geolocate import (
    DESIRED_ACCURACY_IN_METERS,
    INITIALIZATION_TIMEOUT_TICKS,
    MAX_CONTINUOUS_UPDATE_DURATION,
    POLL_INTERVAL_TICKS,
    UPDATE_DISTANCE_IN_METERS,
)
from geolocate.clock import Clock
from geolocate.context import LocationContext
from geolocate.models import LocationFix, ServiceStatus

logger = logging.getLogger(__name__)


class ContinuousUpdateLoop:
    """
    Keeps the session cache filled with the latest location fix for a
    bounded duration.

    Args:
        context (LocationContext): The shared location context.
        clock (Clock): The scheduling clock.
        simulated (bool, optional): Zero the cache instead of keeping it stale
            while the service is not running. Defaults to False.
    """

    def __init__(self, context: LocationContext, clock: Clock, simulated: bool = False):
        self._context = context
        self._clock = clock
        self._simulated = simulated

        self._on_status_changed = None
        self._task = None

    @property
    def active(self) -> bool:
        return self._context.session.active

    @property
    def elapsed(self) -> float:
        return self._context.session.elapsed

    def start(
        self, on_status_changed: Callable[[bool], None] | None = None
    ) -> asyncio.Task:
        """
        Start a continuous update session, replacing the active one if any.

        Args:
            on_status_changed (Callable[[bool], None] | None, optional): Told whether
                the location service reached the running state. Replaces the
                previous registration, `None` keeps it.

        Returns:
            asyncio.Task: The background update task.
        """
        if self._task is not None and not self._task.done():
            logger.info("Superseding active continuous location update")

        generation = self._context.session.reset()
        if on_status_changed is not None:
            self._on_status_changed = on_status_changed

        self._task = asyncio.create_task(self._run(generation))
        return self._task

    def stop(self):
        """Ask the update loop to finish at its next suspension point."""
        self._context.session.active = False

    def snapshot(self) -> LocationFix:
        return self._context.session.latest

    def _is_live(self, generation: int) -> bool:
        session = self._context.session
        return session.active and session.is_current(generation)

    async def _run(self, generation: int):
        session = self._context.session
        service = self._context.service

        try:
            if service.status == ServiceStatus.STOPPED:
                service.start(DESIRED_ACCURACY_IN_METERS, UPDATE_DISTANCE_IN_METERS)

            budget = INITIALIZATION_TIMEOUT_TICKS
            while (
                service.status == ServiceStatus.INITIALIZING
                and budget > 0
                and self._is_live(generation)
            ):
                await self._clock.tick()
                budget -= POLL_INTERVAL_TICKS

            if not self._is_live(generation):
                logger.info("Continuous location update stopped during initialization")
                return

            if service.status != ServiceStatus.RUNNING:
                logger.warning("Location service failed to start")
                session.active = False
                self._notify(False)
                return

            self._notify(True)
            logger.info("Continuous location update started")

            last = self._clock.time()
            while self._is_live(generation) and session.elapsed < MAX_CONTINUOUS_UPDATE_DURATION:
                now = self._clock.time()
                session.elapsed = min(
                    session.elapsed + (now - last), MAX_CONTINUOUS_UPDATE_DURATION
                )
                last = now

                if service.status == ServiceStatus.RUNNING:
                    session.latest = service.last_fix
                elif self._simulated:
                    session.latest = LocationFix.zero()
                else:
                    logger.warning("Location service is not running")

                await self._clock.frame()

        except asyncio.CancelledError:
            logger.info("Continuous location update cancelled")
            raise
        except Exception as e:
            logger.error(f"Continuous location update failed: {e}", exc_info=True)
        finally:
            # A superseded loop leaves the session to its successor
            if session.is_current(generation):
                session.active = False
                service.stop()
                logger.info(
                    f"Continuous location update ended after {round(session.elapsed, 2)} ticks"
                )

    def _notify(self, started: bool):
        if self._on_status_changed is None:
            return

        try:
            self._on_status_changed(started)
        except Exception as e:
            logger.error(f"Error in status callback: {e}", exc_info=True)
