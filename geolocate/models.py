from enum import Enum, IntEnum
from dataclasses import asdict, dataclass, field


class ServiceStatus(IntEnum):
    STOPPED = 0
    INITIALIZING = 1
    RUNNING = 2
    FAILED = 3

    def __str__(self) -> str:
        return self.name.lower()


class Platform(Enum):
    SIMULATED = "simulated"
    PERMISSION_GATED = "permission_gated"
    IMPLICIT = "implicit"

    def __str__(self) -> str:
        return self.value


class PermissionKind(Enum):
    FINE_LOCATION = "fine_location"
    COARSE_LOCATION = "coarse_location"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class LocationFix:
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0
    horizontal_accuracy: float = 0.0

    @staticmethod
    def zero() -> "LocationFix":
        return LocationFix()

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (
            self.latitude,
            self.longitude,
            self.altitude,
            self.horizontal_accuracy,
        )

    def as_dict(self):
        return asdict(self)

    def __str__(self):
        return f"Location ({round(self.latitude, 5)}, {round(self.longitude, 5)})"


@dataclass(frozen=True)
class PermissionOutcome:
    granted: bool
    fix: LocationFix = field(default_factory=LocationFix.zero)

    @staticmethod
    def denied() -> "PermissionOutcome":
        return PermissionOutcome(granted=False)

    def as_tuple(self) -> tuple[bool, float, float, float, float]:
        return (self.granted, *self.fix.as_tuple())

    def as_dict(self):
        return {"granted": self.granted, **self.fix.as_dict()}


@dataclass
class ContinuousSession:
    """
    State of the continuous location update session.

    Attributes:
        active (bool): Whether the streaming loop should keep polling.
        elapsed (float): Accumulated session duration in clock ticks.
        latest (LocationFix): The most recently cached location fix.
        generation (int): Incremented on every start, so a superseded loop
            can detect that it no longer owns the session.
    """

    active: bool = False
    elapsed: float = 0.0
    latest: LocationFix = field(default_factory=LocationFix.zero)
    generation: int = 0

    def reset(self) -> int:
        self.elapsed = 0.0
        self.active = True
        self.generation += 1
        return self.generation

    def is_current(self, generation: int) -> bool:
        return self.generation == generation
