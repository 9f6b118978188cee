"""BodyType enum and the classifications derived from it."""

from enum import Enum


class BodyType(Enum):
    """Vehicle body classification."""

    FLATBED = "flatbed"
    VAN = "van"
    CAR = "car"
    LIGHT_TRACTOR = "light-tractor"  # < 3.5 t
    HEAVY_TRACTOR = "heavy-tractor"  # > 3.5 t
    SEMI_TRAILER = "semi-trailer"
    LIGHT_TRAILER = "light-trailer"  # < 3.5 t
    HEAVY_TRAILER = "heavy-trailer"  # > 3.5 t

    @property
    def is_annual_cadence(self) -> bool:
        """Heavy tractors and heavy/semi trailers are inspected every year."""
        return self in ANNUAL_CADENCE

    @property
    def is_motor_vehicle(self) -> bool:
        """Trailers have no engine, so displacement and power do not apply."""
        return self not in TRAILERS


ANNUAL_CADENCE = frozenset(
    {BodyType.HEAVY_TRACTOR, BodyType.SEMI_TRAILER, BodyType.HEAVY_TRAILER}
)

TRAILERS = frozenset(
    {BodyType.SEMI_TRAILER, BodyType.LIGHT_TRAILER, BodyType.HEAVY_TRAILER}
)
