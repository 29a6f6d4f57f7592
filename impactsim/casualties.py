from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from math import pi, floor

from .validation import require_non_negative

# -----------------------------
# Fatality rates & dampening
# -----------------------------
CRATER_FATALITY_RATE = 1.0
FIREBALL_FATALITY_RATE = 0.95
SEVERE_ZONE_FATALITY_RATE = 0.7
MODERATE_ZONE_FATALITY_RATE = 0.3
SHOCKWAVE_FATALITY_RATE = 0.6
WIND_BLAST_FATALITY_RATE = 0.65
SEISMIC_FATALITY_RATE = 0.01
BURNS_3RD_DEGREE_RATE = 0.6
BURNS_2ND_DEGREE_RATE = 0.4
INJURED_SHARE_OF_SURVIVORS = 0.5

# water / ice soak up thermal and blast energy
OCEAN_THERMAL_FACTOR = 0.05
OCEAN_BLAST_FACTOR = 0.1

DATA_SOURCE_MEASURED = "World Population CSV Data"
DATA_SOURCE_ESTIMATED = "Geographic Estimation"


class LocationCategory(str, Enum):
    UNPOPULATED = "Unpopulated/Ocean"
    REMOTE = "Remote/Wilderness"
    RURAL = "Rural Area"
    SUBURBAN = "Suburban Area"
    URBAN = "Urban Area"
    DENSE_URBAN = "Dense Urban Area"
    # geographic estimation only
    OCEAN_REMOTE = "Ocean/Remote"
    POLAR = "Polar Region"
    POPULATED = "Populated Region"

    @property
    def dampened(self) -> bool:
        return self in (LocationCategory.OCEAN_REMOTE, LocationCategory.POLAR)


class Severity(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    SIGNIFICANT = "SIGNIFICANT"
    MAJOR = "MAJOR"
    SEVERE = "SEVERE"
    CATASTROPHIC = "CATASTROPHIC"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)


# (exclusive lower bound on fatalities, severity), highest first
SEVERITY_THRESHOLDS = (
    (1_000_000, Severity.CATASTROPHIC),
    (100_000, Severity.SEVERE),
    (10_000, Severity.MAJOR),
    (1_000, Severity.SIGNIFICANT),
    (100, Severity.MODERATE),
)

# (exclusive upper bound on people/km^2, category) for measured densities
DENSITY_BUCKETS = (
    (1.0, LocationCategory.REMOTE),
    (10.0, LocationCategory.RURAL),
    (100.0, LocationCategory.SUBURBAN),
    (1000.0, LocationCategory.URBAN),
)

# (lat_min, lat_max, lon_min, lon_max), all bounds exclusive
OCEAN_LON_BANDS = ((-180.0, -140.0), (-60.0, 20.0), (40.0, 140.0))
POPULATED_BOXES = (
    (20.0, 50.0, -130.0, -60.0),   # North America
    (35.0, 65.0, -10.0, 40.0),     # Europe
    (20.0, 45.0, 70.0, 145.0),     # South / East Asia
    (-35.0, -10.0, -60.0, -35.0),  # South-east South America
)
ESTIMATED_DENSITY = {
    LocationCategory.OCEAN_REMOTE: 0.5,
    LocationCategory.POLAR: 1.0,
    LocationCategory.POPULATED: 150.0,
    LocationCategory.RURAL: 25.0,
}


def round_half_up(x: float) -> int:
    return int(floor(x + 0.5))


def classify_density(density: float) -> LocationCategory:
    if density == 0:
        return LocationCategory.UNPOPULATED
    for upper, category in DENSITY_BUCKETS:
        if density < upper:
            return category
    return LocationCategory.DENSE_URBAN


def estimate_density(lat: float, lon: float) -> tuple[float, LocationCategory]:
    """Coarse bounding-box fallback used when no measured density is available."""
    abs_lat = abs(lat)
    in_ocean_band = any(lo < lon < hi for lo, hi in OCEAN_LON_BANDS)
    if abs_lat < 40 and in_ocean_band:
        category = LocationCategory.OCEAN_REMOTE
    elif abs_lat > 60:
        category = LocationCategory.POLAR
    elif any(la0 < lat < la1 and lo0 < lon < lo1 for la0, la1, lo0, lo1 in POPULATED_BOXES):
        category = LocationCategory.POPULATED
    else:
        category = LocationCategory.RURAL
    return ESTIMATED_DENSITY[category], category


def classify_severity(fatalities: float) -> Severity:
    for lower, severity in SEVERITY_THRESHOLDS:
        if fatalities > lower:
            return severity
    return Severity.LOW


def zone_areas(crater_radius: float, severe_radius: float, moderate_radius: float) -> tuple[float, float, float]:
    """
    Crater disc plus the severe and moderate rings around it (km^2).
    A ring whose inner circle is larger than its outer one is empty, not negative.
    """
    crater_area = pi * crater_radius**2
    severe_area = max(0.0, pi * severe_radius**2 - crater_area)
    moderate_area = max(0.0, pi * moderate_radius**2 - pi * severe_radius**2)
    return crater_area, severe_area, moderate_area


@dataclass(frozen=True)
class PopulationImpact:
    population_density: float
    location_category: LocationCategory
    data_source: str
    crater_area_km2: float
    severe_area_km2: float
    moderate_area_km2: float
    crater_vaporized: int
    fireball_deaths: int
    severe_fatalities: int
    moderate_fatalities: int
    shock_wave_deaths: int
    wind_blast_deaths: int
    seismic_deaths: int
    burns_3rd_degree: int
    burns_2nd_degree: int
    total_at_risk: int
    estimated_fatalities: int
    estimated_injured: int
    severity: Severity

    def to_dict(self) -> dict:
        return {
            "totalAtRisk": self.total_at_risk,
            "estimatedFatalities": self.estimated_fatalities,
            "estimatedInjured": self.estimated_injured,
            "locationCategory": self.location_category.value,
            "populationDensity": round(self.population_density, 1),
            "dataSource": self.data_source,
            "severity": self.severity.value,
            "craterVaporized": self.crater_vaporized,
            "groundZeroFatalityRate": round(CRATER_FATALITY_RATE * 100),
            "fireballDeaths": self.fireball_deaths,
            "severeFatalities": self.severe_fatalities,
            "moderateFatalities": self.moderate_fatalities,
            "burns3rdDegree": self.burns_3rd_degree,
            "burns2ndDegree": self.burns_2nd_degree,
            "shockWaveDeaths": self.shock_wave_deaths,
            "windBlastDeaths": self.wind_blast_deaths,
            "seismicDeaths": self.seismic_deaths,
            "zoneAreas": {
                "crater": self.crater_area_km2,
                "severe": self.severe_area_km2,
                "moderate": self.moderate_area_km2,
            },
        }


def compute_casualties(lat: float, lon: float,
                       crater_radius: float, severe_radius: float, moderate_radius: float,
                       fireball_radius: float, thermal_3rd_radius: float, thermal_2nd_radius: float,
                       lung_radius: float, eardrum_radius: float, seismic_radius: float,
                       population_density: float | None = None) -> PopulationImpact:
    """
    Overlay the damage rings on a population density (people/km^2).

    With ``population_density`` the location is bucketed by density value;
    without it the density comes from ``estimate_density``. Only the crater,
    severe-ring and moderate-ring counts make up ``estimated_fatalities``; the
    fireball/shockwave/wind/seismic/burn counts overlap those zones and are
    reported as a breakdown. Lung and eardrum radii are accepted for parity
    with the full effect set but do not drive any count.
    """
    radii = {
        "crater_radius": crater_radius, "severe_radius": severe_radius,
        "moderate_radius": moderate_radius, "fireball_radius": fireball_radius,
        "thermal_3rd_radius": thermal_3rd_radius, "thermal_2nd_radius": thermal_2nd_radius,
        "lung_radius": lung_radius, "eardrum_radius": eardrum_radius,
        "seismic_radius": seismic_radius,
    }
    r = {k: require_non_negative(k, v) for k, v in radii.items()}

    if population_density is not None:
        density = require_non_negative("population_density", population_density)
        category = classify_density(density)
        data_source = DATA_SOURCE_MEASURED
    else:
        density, category = estimate_density(lat, lon)
        data_source = DATA_SOURCE_ESTIMATED

    thermal_factor = OCEAN_THERMAL_FACTOR if category.dampened else 1.0
    blast_factor = OCEAN_BLAST_FACTOR if category.dampened else 1.0

    crater_area, severe_area, moderate_area = zone_areas(
        r["crater_radius"], r["severe_radius"], r["moderate_radius"])

    def disc(radius: float) -> float:
        return pi * radius**2

    crater = round_half_up(crater_area * density * CRATER_FATALITY_RATE)
    fireball = round_half_up(disc(r["fireball_radius"]) * density * FIREBALL_FATALITY_RATE * thermal_factor)
    severe = round_half_up(severe_area * density * SEVERE_ZONE_FATALITY_RATE * blast_factor)
    moderate = round_half_up(moderate_area * density * MODERATE_ZONE_FATALITY_RATE * blast_factor)
    shock_wave = round_half_up(severe_area * density * SHOCKWAVE_FATALITY_RATE * blast_factor)
    wind_blast = round_half_up(severe_area * density * WIND_BLAST_FATALITY_RATE * blast_factor)
    seismic = round_half_up(disc(r["seismic_radius"]) * density * SEISMIC_FATALITY_RATE)
    burns_3rd = round_half_up(disc(r["thermal_3rd_radius"]) * density * BURNS_3RD_DEGREE_RATE * thermal_factor)
    burns_2nd = round_half_up(disc(r["thermal_2nd_radius"]) * density * BURNS_2ND_DEGREE_RATE * thermal_factor)

    fatalities = crater + severe + moderate
    at_risk = round_half_up(disc(r["moderate_radius"]) * density)
    injured = max(0, round_half_up((at_risk - fatalities) * INJURED_SHARE_OF_SURVIVORS))

    return PopulationImpact(
        population_density=density,
        location_category=category,
        data_source=data_source,
        crater_area_km2=crater_area,
        severe_area_km2=severe_area,
        moderate_area_km2=moderate_area,
        crater_vaporized=crater,
        fireball_deaths=fireball,
        severe_fatalities=severe,
        moderate_fatalities=moderate,
        shock_wave_deaths=shock_wave,
        wind_blast_deaths=wind_blast,
        seismic_deaths=seismic,
        burns_3rd_degree=burns_3rd,
        burns_2nd_degree=burns_2nd,
        total_at_risk=at_risk,
        estimated_fatalities=fatalities,
        estimated_injured=injured,
        severity=classify_severity(fatalities),
    )


def casualties_for(effects, population_density: float | None = None) -> PopulationImpact:
    """Run ``compute_casualties`` with the radii of an ``ImpactEffects``."""
    return compute_casualties(
        effects.params.lat, effects.params.lon,
        crater_radius=effects.crater_radius_km,
        severe_radius=effects.air_blast_radius_km,
        moderate_radius=effects.moderate_damage_radius_km,
        fireball_radius=effects.fireball_radius_km,
        thermal_3rd_radius=effects.thermal_3rd_degree_radius_km,
        thermal_2nd_radius=effects.thermal_2nd_degree_radius_km,
        lung_radius=effects.lung_damage_radius_km,
        eardrum_radius=effects.eardrums_rupture_radius_km,
        seismic_radius=effects.seismic_felt_radius_km,
        population_density=population_density,
    )
