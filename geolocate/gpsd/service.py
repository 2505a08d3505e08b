import asyncio
import logging

from geolocate.exceptions import ProtocolError
from geolocate.gpsd import client
from geolocate.gpsd.schemas import TPV
from geolocate.models import LocationFix, ServiceStatus
from geolocate.service import LocationService

logger = logging.getLogger(__name__)


class GpsdLocationService(LocationService):
    """
    Location service backed by a gpsd daemon.

    The service is initializing until gpsd reports a 2D or 3D fix, and
    fails when the daemon cannot be reached or sends an error report.

    Args:
        host (str, optional): The gpsd host. Defaults to "127.0.0.1".
        port (int, optional): The gpsd port. Defaults to 2947.
        enabled (bool, optional): Whether location access is enabled. Defaults to True.
    """

    def __init__(
        self,
        host: str = client.DEFAULT_HOST,
        port: int = client.DEFAULT_PORT,
        enabled: bool = True,
    ):
        self._host = host
        self._port = port
        self._enabled = enabled

        self._status = ServiceStatus.STOPPED
        self._fix = LocationFix.zero()
        self._task = None

    def start(self, desired_accuracy: float, min_update_distance: float):
        if self._task is not None and not self._task.done():
            return

        logger.info(
            f"Starting gpsd location service at {self._host}:{self._port} (accuracy={desired_accuracy}m)"
        )
        self._status = ServiceStatus.INITIALIZING
        self._task = asyncio.create_task(self._read())

    def stop(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None
        if self._status != ServiceStatus.STOPPED:
            logger.info("Stopping gpsd location service")
        self._status = ServiceStatus.STOPPED

    @property
    def status(self) -> ServiceStatus:
        return self._status

    @property
    def last_fix(self) -> LocationFix:
        return self._fix

    @property
    def is_enabled_by_user(self) -> bool:
        return self._enabled

    def feed(self, report: TPV):
        if not report.mode.has_fix or report.lat is None or report.lon is None:
            if self._status == ServiceStatus.RUNNING:
                logger.debug(f"GPS fix lost (mode {report.mode})")
            self._status = ServiceStatus.INITIALIZING
            return

        self._fix = LocationFix(
            latitude=report.lat,
            longitude=report.lon,
            altitude=report.altitude or 0.0,
            horizontal_accuracy=report.horizontal_error or 0.0,
        )
        self._status = ServiceStatus.RUNNING

    async def _read(self):
        try:
            async with await client.open(self._host, self._port) as c:
                async for result in c:
                    if isinstance(result, TPV):
                        self.feed(result)

        except asyncio.CancelledError:
            logger.debug("gpsd reader cancelled")
            raise
        except ProtocolError as e:
            logger.error(f"gpsd protocol error: {e}")
            self._status = ServiceStatus.FAILED
        except (ConnectionError, OSError) as e:
            logger.debug(f"gpsd connection error: {e}")
            logger.error("gpsd is not running")
            self._status = ServiceStatus.FAILED
