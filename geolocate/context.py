from geolocate.models import ContinuousSession
from geolocate.service import LocationService


class LocationContext:
    """
    Process-wide location state, owned by the caller and shared by the
    permission coordinator and the continuous update loop.

    Must only be used from the event loop that drives both components.

    Args:
        service (LocationService): The device location service.
    """

    def __init__(self, service: LocationService):
        self._service = service
        self._session = ContinuousSession()

    @property
    def service(self) -> LocationService:
        return self._service

    @property
    def session(self) -> ContinuousSession:
        return self._session
