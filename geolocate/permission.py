import asyncio
import logging
from typing import Callable

from geolocate import (
    DESIRED_ACCURACY_IN_METERS,
    INITIALIZATION_TIMEOUT_TICKS,
    POLL_INTERVAL_TICKS,
    UPDATE_DISTANCE_IN_METERS,
)
from geolocate.clock import Clock
from geolocate.context import LocationContext
from geolocate.models import (
    PermissionKind,
    PermissionOutcome,
    Platform,
    ServiceStatus,
)
from geolocate.service import PermissionService

logger = logging.getLogger(__name__)


class PermissionCoordinator:
    """
    Turns a single permission request into exactly one completion.

    Args:
        context (LocationContext): The shared location context.
        clock (Clock): The scheduling clock.
        platform (Platform, optional): The platform capability. Defaults to `Platform.IMPLICIT`.
        permissions (PermissionService | None, optional): Required on permission gated platforms.

    Raises:
        ValueError: If the platform is permission gated and no permission service is given.
    """

    def __init__(
        self,
        context: LocationContext,
        clock: Clock,
        platform: Platform = Platform.IMPLICIT,
        permissions: PermissionService | None = None,
    ):
        if platform == Platform.PERMISSION_GATED and permissions is None:
            raise ValueError("Permission gated platform requires a permission service")

        self._context = context
        self._clock = clock
        self._platform = platform
        self._permissions = permissions

    def get_permission_status(self) -> bool:
        """
        Check whether the user has enabled location access.

        Returns:
            bool: The current answer of the location service, never cached.
        """
        return self._context.service.is_enabled_by_user

    def request_permission(
        self, on_complete: Callable[[PermissionOutcome], None] | None = None
    ) -> asyncio.Task:
        """
        Request location permission and a single location fix.

        The flow runs on the event loop, this method returns immediately.

        Args:
            on_complete (Callable[[PermissionOutcome], None] | None, optional): Invoked exactly once with the outcome.

        Returns:
            asyncio.Task: Resolves to the `PermissionOutcome`.
        """
        return asyncio.create_task(self._request(self._platform, on_complete))

    async def _request(self, platform: Platform, on_complete) -> PermissionOutcome:
        try:
            outcome = await self._resolve(platform)
        except asyncio.CancelledError:
            self._complete(on_complete, PermissionOutcome.denied())
            raise
        except Exception as e:
            logger.error(f"Location request failed: {e}", exc_info=True)
            outcome = PermissionOutcome.denied()

        self._complete(on_complete, outcome)
        return outcome

    async def _resolve(self, platform: Platform) -> PermissionOutcome:
        match platform:
            case Platform.SIMULATED:
                return PermissionOutcome(granted=True)
            case Platform.PERMISSION_GATED:
                if not await self._acquire_permission():
                    logger.warning("Location permission denied")
                    return PermissionOutcome.denied()
                return await self._start_service()
            case Platform.IMPLICIT:
                return await self._start_service()
            case _:
                raise ValueError(f"Unknown platform: {platform}")

    async def _acquire_permission(self) -> bool:
        kind = PermissionKind.FINE_LOCATION

        if not self._permissions.has_permission(kind):
            logger.info(f"Requesting {kind} permission")
            self._permissions.request_permission(kind)

            # Give the user one tick to respond
            await self._clock.tick()

        return self._permissions.has_permission(kind)

    async def _start_service(self) -> PermissionOutcome:
        service = self._context.service
        service.start(DESIRED_ACCURACY_IN_METERS, UPDATE_DISTANCE_IN_METERS)

        budget = INITIALIZATION_TIMEOUT_TICKS
        while service.status == ServiceStatus.INITIALIZING and budget > 0:
            await self._clock.tick()
            budget -= POLL_INTERVAL_TICKS

        if budget <= 0:
            logger.warning(
                f"Location service did not initialize within {INITIALIZATION_TIMEOUT_TICKS} ticks"
            )
            return PermissionOutcome.denied()

        if service.status == ServiceStatus.FAILED:
            logger.warning("Location service failed")
            return PermissionOutcome.denied()

        fix = service.last_fix
        logger.info(f"Location permission granted: {fix}")
        return PermissionOutcome(granted=True, fix=fix)

    @staticmethod
    def _complete(on_complete, outcome: PermissionOutcome):
        if on_complete is None:
            return

        try:
            on_complete(outcome)
        except Exception as e:
            logger.error(f"Error in permission callback: {e}", exc_info=True)
