import configparser

from pydantic import BaseModel, Field, field_validator

from geolocate.models import LocationFix, Platform


class LocationConfig(BaseModel):
    platform: Platform = Platform.IMPLICIT
    tick_interval: float = Field(default=1.0, gt=0)
    frame_rate: int = Field(default=30, gt=0)


class GpsdConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 2947
    enabled: bool = True


class PermissionConfig(BaseModel):
    mode: str = "static"
    granted: bool = False
    grant_on_request: bool = False

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("static", "remote"):
            raise ValueError("Permission mode must be 'static' or 'remote'")
        return value


class SimulationConfig(BaseModel):
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0
    horizontal_accuracy: float = 0.0
    initialization_ticks: float = Field(default=1.0, ge=0)

    @property
    def fix(self) -> LocationFix:
        return LocationFix(
            latitude=self.latitude,
            longitude=self.longitude,
            altitude=self.altitude,
            horizontal_accuracy=self.horizontal_accuracy,
        )


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8765


class AgentConfig(BaseModel):
    location: LocationConfig = LocationConfig()
    gpsd: GpsdConfig = GpsdConfig()
    permission: PermissionConfig = PermissionConfig()
    simulation: SimulationConfig = SimulationConfig()
    server: ServerConfig = ServerConfig()

    @staticmethod
    def from_parser(config: configparser.ConfigParser) -> "AgentConfig":
        sections = {}
        for name in AgentConfig.model_fields:
            if config.has_section(name):
                sections[name] = {k: v for k, v in config.items(name, raw=True)}
        return AgentConfig(**sections)


def load(path: str) -> AgentConfig:
    """
    Read the agent configuration from an INI file.

    Missing files and sections fall back to defaults.

    Args:
        path (str): The path to the configuration file.

    Returns:
        AgentConfig: The validated configuration.

    Raises:
        pydantic.ValidationError: If a value is invalid.
    """
    config = configparser.ConfigParser()
    config.read(path)
    return AgentConfig.from_parser(config)
