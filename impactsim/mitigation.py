from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from math import pi

from .errors import InvalidInput
from .validation import require_positive, require_range

EARTH_RADIUS_KM = 6371.0
MISS_THRESHOLD_FRACTION = 0.02    # of Earth's radius, ~127 km
SECONDS_PER_YEAR = 365.25 * 24 * 3600
MIN_PROBABILITY = 5.0
MAX_PROBABILITY = 98.0


class MitigationStrategy(str, Enum):
    KINETIC = "kinetic"
    GRAVITY = "gravity"
    NUCLEAR = "nuclear"

    @classmethod
    def parse(cls, value) -> "MitigationStrategy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise InvalidInput("mitigationType", f"unknown strategy {value!r}; expected one of {allowed}") from None

    @property
    def heuristic(self) -> "StrategyHeuristic":
        return STRATEGY_HEURISTICS[self]


@dataclass(frozen=True)
class StrategyHeuristic:
    """Illustrative probability curve, min(cap, years/diameter * k1 * dv * k2)."""
    cap: float
    k1: float
    k2: float

    def success_probability(self, warning_time_years: float, diameter_m: float,
                            velocity_change_cm_s: float) -> float:
        raw = min(self.cap, (warning_time_years / diameter_m) * self.k1 * velocity_change_cm_s * self.k2)
        return max(MIN_PROBABILITY, min(MAX_PROBABILITY, raw))


STRATEGY_HEURISTICS = {
    MitigationStrategy.KINETIC: StrategyHeuristic(cap=95.0, k1=1000.0, k2=10.0),
    MitigationStrategy.GRAVITY: StrategyHeuristic(cap=90.0, k1=800.0, k2=8.0),
    MitigationStrategy.NUCLEAR: StrategyHeuristic(cap=98.0, k1=1200.0, k2=12.0),
}


def miss_threshold_km() -> float:
    return EARTH_RADIUS_KM * MISS_THRESHOLD_FRACTION


def deflection_distance_km(warning_time_years: float, velocity_change_cm_s: float) -> float:
    return (velocity_change_cm_s / 100.0) * (warning_time_years * SECONDS_PER_YEAR) / 1000.0


@dataclass(frozen=True)
class MitigationOutcome:
    strategy: MitigationStrategy
    warning_time_years: float
    velocity_change_cm_s: float
    deflection_distance_km: float
    success_probability_percent: float
    success: bool
    new_impact_location: tuple[float, float] | None   # (lat, lon)

    @property
    def message(self) -> str:
        km = f"{self.deflection_distance_km:.0f}"
        if self.success:
            return f"Success! Asteroid deflected by {km} km - Earth impact avoided."
        return (f"Partial deflection achieved. Impact point shifted by {km} km. "
                "Consider additional mitigation efforts.")

    def to_dict(self) -> dict:
        new_location = None
        if self.new_impact_location is not None:
            lat, lon = self.new_impact_location
            new_location = {"lat": round(lat, 4), "lon": round(lon, 4)}
        return {
            "success": self.success,
            "successProbability": round(self.success_probability_percent, 1),
            "deflectionDistance": round(self.deflection_distance_km),
            "newLocation": new_location,
            "mitigationType": self.strategy.value,
            "warningTime": self.warning_time_years,
            "velocityChange": self.velocity_change_cm_s,
            "message": self.message,
        }


def compute_mitigation(diameter: float, velocity: float, lat: float, lon: float,
                       strategy, warning_time_years: float,
                       velocity_change_cm_s: float) -> MitigationOutcome:
    """
    Deflection achieved by a velocity change applied ``warning_time_years``
    before encounter. The shift is treated as purely meridional, so only the
    latitude of the new impact point moves.
    """
    strategy = MitigationStrategy.parse(strategy)
    diameter = require_positive("diameter", diameter)
    require_positive("velocity", velocity)
    lat = require_range("lat", lat, -90.0, 90.0)
    lon = require_range("lon", lon, -180.0, 180.0)
    years = require_positive("warningTime", warning_time_years)
    dv = require_positive("velocityChange", velocity_change_cm_s)

    deflection_km = deflection_distance_km(years, dv)
    success = deflection_km > miss_threshold_km()
    new_location = None
    if not success:
        delta_lat = (deflection_km / EARTH_RADIUS_KM) * (180.0 / pi)
        new_location = (lat + delta_lat, lon)

    return MitigationOutcome(
        strategy=strategy,
        warning_time_years=years,
        velocity_change_cm_s=dv,
        deflection_distance_km=deflection_km,
        success_probability_percent=strategy.heuristic.success_probability(years, diameter, dv),
        success=success,
        new_impact_location=new_location,
    )
