from geolocate.gpsd.service import GpsdLocationService

__all__ = ["GpsdLocationService"]
