from __future__ import annotations
from dataclasses import dataclass, fields
from math import pi, sin, radians, log10, isfinite

from .errors import InvalidInput, ComputationError
from .validation import require_positive, require_range

# -----------------------------
# Physical constants & defaults
# -----------------------------
J_PER_MT_TNT = 4.184e15          # J in 1 megaton TNT
TARGET_DENSITY = 2500.0          # kg/m^3  typical crustal rock
TARGET_SOUND_SPEED = 5000.0      # m/s     typical crustal rock

TSAR_BOMBA_MT = 50.0
HIROSHIMA_MT = 0.015
HURRICANE_MT = 60.0              # rough daily energy of a mature hurricane

PEAK_WIND_20PSI_MPH = 470.0      # wind behind a 20 psi front
MPH_TO_KMH = 1.60934
KMS_TO_KMH = 3600.0
KMS_TO_MPH = 2236.94
MAX_DECIBELS = 250.0

# Empirical radius laws, r_km = coeff * E_Mt ** exponent
FIREBALL_DIAMETER_LAW = (0.56, 0.33)
THERMAL_IGNITION_LAW = (0.38, 0.41)
THERMAL_3RD_DEGREE_LAW = (0.32, 0.38)
THERMAL_2ND_DEGREE_LAW = (0.46, 0.40)
BLAST_20PSI_LAW = (0.22, 0.33)
BLAST_5PSI_LAW = (0.54, 0.33)
BLAST_1PSI_LAW = (1.04, 0.33)

# (upper diameter bound in m, recurrence)
IMPACT_FREQUENCY_BUCKETS = (
    (50.0,   "every 10-100 years"),
    (100.0,  "every 100-1,000 years"),
    (300.0,  "every 1,000-10,000 years"),
    (1000.0, "every 10,000-100,000 years"),
)
IMPACT_FREQUENCY_RAREST = "every 100,000+ years"

# Ocean proxy: anything equatorward of 60 deg counts as "could be open water".
# There is no land/water mask behind this.
TSUNAMI_OCEAN_MAX_ABS_LAT = 60.0
TSUNAMI_HIGH = "HIGH - Capable of generating destructive tsunamis"
TSUNAMI_MODERATE = "MODERATE - May generate local tsunamis"
TSUNAMI_LOW = "LOW"


def _power_law(law: tuple[float, float], energy_mt: float) -> float:
    coeff, exponent = law
    return coeff * energy_mt ** exponent


@dataclass(frozen=True)
class ImpactorParameters:
    diameter: float   # m
    velocity: float   # km/s
    angle: float      # deg to HORIZONTAL, 90 = vertical
    density: float    # kg/m^3
    lat: float
    lon: float

    def __post_init__(self):
        # normalise to float and reject anything the formulas can't take
        object.__setattr__(self, "diameter", require_positive("diameter", self.diameter))
        object.__setattr__(self, "velocity", require_positive("velocity", self.velocity))
        object.__setattr__(self, "density", require_positive("density", self.density))
        angle = require_range("angle", self.angle, 0.0, 90.0)
        if angle == 0.0:
            raise InvalidInput("angle", "must be greater than 0")
        object.__setattr__(self, "angle", angle)
        object.__setattr__(self, "lat", require_range("lat", self.lat, -90.0, 90.0))
        object.__setattr__(self, "lon", require_range("lon", self.lon, -180.0, 180.0))

    @property
    def radius_m(self) -> float:
        return 0.5 * self.diameter

    @property
    def velocity_mps(self) -> float:
        return self.velocity * 1000.0

    @property
    def angle_rad(self) -> float:
        return radians(self.angle)

    @property
    def volume_m3(self) -> float:
        return (4.0 / 3.0) * pi * self.radius_m**3

    @property
    def mass_kg(self) -> float:
        return self.volume_m3 * self.density


@dataclass(frozen=True)
class ImpactEffects:
    params: ImpactorParameters
    mass_kg: float
    kinetic_energy_J: float
    energy_megatons: float
    energy_gigatons: float
    # crater (km)
    crater_diameter_km: float
    crater_depth_km: float
    crater_radius_km: float
    # seismic
    seismic_magnitude: float
    seismic_felt_radius_km: float
    # thermal (km)
    fireball_diameter_km: float
    fireball_radius_km: float
    thermal_ignition_radius_km: float
    thermal_3rd_degree_radius_km: float
    thermal_2nd_degree_radius_km: float
    # blast (km)
    air_blast_radius_km: float        # 20 psi
    moderate_damage_radius_km: float  # 5 psi
    light_damage_radius_km: float     # 1 psi
    # wind / acoustic / derived rings (km)
    lung_damage_radius_km: float
    eardrums_rupture_radius_km: float
    ef5_tornado_zone_km: float
    trees_blown_radius_km: float
    jupiter_storm_zone_km: float
    total_collapse_radius_km: float
    home_destruction_radius_km: float
    max_decibels: float
    peak_wind_speed_mph: float
    affected_area_km2: float
    # comparisons
    tsar_bomba_equivalent: float
    hiroshima_equivalent: float
    hurricane_comparison: bool
    impact_frequency: str
    tsunami_risk: str

    @property
    def peak_wind_speed_kmh(self) -> float:
        return self.peak_wind_speed_mph * MPH_TO_KMH

    @property
    def severe_structural_damage_radius_km(self) -> float:
        return self.moderate_damage_radius_km

    def numeric_values(self) -> dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)
                if isinstance(getattr(self, f.name), float)}

    def to_dict(self) -> dict:
        """JSON view with the display rounding the web client expects."""
        p = self.params
        return {
            "energy": round(self.energy_megatons, 2),
            "energyGigatons": round(self.energy_gigatons, 4),
            "kineticEnergyJ": self.kinetic_energy_J,
            "massKg": self.mass_kg,
            "impactVelocityKmh": round(p.velocity * KMS_TO_KMH),
            "impactVelocityMph": round(p.velocity * KMS_TO_MPH),
            "impactFrequency": self.impact_frequency,
            "tsarBombaEquivalent": round(self.tsar_bomba_equivalent, 1),
            "hiroshimaEquivalent": round(self.hiroshima_equivalent),
            "hurricaneComparison": self.hurricane_comparison,
            "craterDiameter": round(self.crater_diameter_km, 2),
            "craterDepth": round(self.crater_depth_km, 3),
            "craterRadius": round(self.crater_radius_km, 2),
            "fireballDiameter": round(self.fireball_diameter_km, 2),
            "fireballRadius": round(self.fireball_radius_km, 2),
            "thermalIgnitionRadius": round(self.thermal_ignition_radius_km, 2),
            "thermal3rdDegreeRadius": round(self.thermal_3rd_degree_radius_km, 2),
            "thermal2ndDegreeRadius": round(self.thermal_2nd_degree_radius_km, 2),
            "maxDecibels": round(self.max_decibels),
            "lungDamageRadius": round(self.lung_damage_radius_km, 2),
            "eardrumsRuptureRadius": round(self.eardrums_rupture_radius_km, 2),
            "airBlastRadius": round(self.air_blast_radius_km, 2),
            "moderateDamageRadius": round(self.moderate_damage_radius_km, 2),
            "lightDamageRadius": round(self.light_damage_radius_km, 2),
            "peakWindSpeedMph": round(self.peak_wind_speed_mph),
            "peakWindSpeedKmh": round(self.peak_wind_speed_kmh),
            "ef5TornadoZone": round(self.ef5_tornado_zone_km, 2),
            "treesBlownRadius": round(self.trees_blown_radius_km, 2),
            "jupiterStormZone": round(self.jupiter_storm_zone_km, 2),
            "totalCollapseRadius": round(self.total_collapse_radius_km, 2),
            "homeDestructionRadius": round(self.home_destruction_radius_km, 2),
            "severeStructuralDamageRadius": round(self.severe_structural_damage_radius_km, 2),
            "seismicMagnitude": round(self.seismic_magnitude, 1),
            "seismicFeltRadius": round(self.seismic_felt_radius_km),
            "affectedArea": round(self.affected_area_km2),
            "tsunamiRisk": self.tsunami_risk,
            "impactLocation": {"lat": p.lat, "lon": p.lon},
            "zones": {
                "crater": self.crater_radius_km,
                "severe": self.air_blast_radius_km,
                "moderate": self.moderate_damage_radius_km,
            },
        }


class ImpactModel:
    """
    Energy + crater + seismic + thermal + air-blast + qualitative buckets.
    Every radius comes from an independent closed-form scaling law, so the
    rings are not guaranteed to nest.
    """

    def __init__(self, params: ImpactorParameters):
        self.p = params

    # ---------- Energetics ----------
    def kinetic_energy_J(self) -> float:
        return 0.5 * self.p.mass_kg * self.p.velocity_mps**2

    def energy_mt_tnt(self) -> float:
        return self.kinetic_energy_J() / J_PER_MT_TNT

    # ---------- Crater (Holsapple-Housen style) ----------
    def crater_diameter_m(self) -> float:
        return (1.8 * self.p.diameter
                * (self.p.density / TARGET_DENSITY) ** (1.0 / 3.0)
                * (self.p.velocity_mps / TARGET_SOUND_SPEED) ** 0.44
                / sin(self.p.angle_rad) ** (1.0 / 3.0))

    def crater_depth_m(self) -> float:
        return self.crater_diameter_m() / 3.0

    # ---------- Seismic ----------
    def seismic_magnitude(self) -> float:
        return 0.67 * log10(self.kinetic_energy_J()) - 5.87

    def seismic_felt_radius_km(self) -> float:
        return 10.0 ** (self.seismic_magnitude() / 2.0) * 0.5

    # ---------- Thermal ----------
    def thermal_radii_km(self) -> dict:
        E_mt = self.energy_mt_tnt()
        fireball_d = _power_law(FIREBALL_DIAMETER_LAW, E_mt)
        return {
            "fireball_diameter": fireball_d,
            "fireball_radius": fireball_d / 2.0,
            "ignition": _power_law(THERMAL_IGNITION_LAW, E_mt),
            "third_degree_burn": _power_law(THERMAL_3RD_DEGREE_LAW, E_mt),
            "second_degree_burn": _power_law(THERMAL_2ND_DEGREE_LAW, E_mt),
        }

    # ---------- Air blast ----------
    def blast_radii_km(self) -> dict:
        E_mt = self.energy_mt_tnt()
        return {
            "psi_20": _power_law(BLAST_20PSI_LAW, E_mt),
            "psi_5": _power_law(BLAST_5PSI_LAW, E_mt),
            "psi_1": _power_law(BLAST_1PSI_LAW, E_mt),
        }

    def max_decibels(self) -> float:
        return min(MAX_DECIBELS, 200.0 + 20.0 * log10(self.energy_mt_tnt()))

    # ---------- Qualitative buckets ----------
    def impact_frequency(self) -> str:
        for upper_m, label in IMPACT_FREQUENCY_BUCKETS:
            if self.p.diameter < upper_m:
                return label
        return IMPACT_FREQUENCY_RAREST

    def tsunami_risk(self) -> str:
        maybe_ocean = abs(self.p.lat) < TSUNAMI_OCEAN_MAX_ABS_LAT
        if maybe_ocean and self.p.diameter > 200.0:
            return TSUNAMI_HIGH
        if maybe_ocean and self.p.diameter > 50.0:
            return TSUNAMI_MODERATE
        return TSUNAMI_LOW

    # ---------- Convenience summary ----------
    def effects(self) -> ImpactEffects:
        try:
            return self._effects()
        except (OverflowError, ZeroDivisionError) as e:
            raise ComputationError(f"{e} for {self.p}") from e

    def _effects(self) -> ImpactEffects:
        E_J = self.kinetic_energy_J()
        E_mt = E_J / J_PER_MT_TNT
        crater_d_km = self.crater_diameter_m() / 1000.0
        thermal = self.thermal_radii_km()
        blast = self.blast_radii_km()
        severe, moderate = blast["psi_20"], blast["psi_5"]

        effects = ImpactEffects(
            params=self.p,
            mass_kg=self.p.mass_kg,
            kinetic_energy_J=E_J,
            energy_megatons=E_mt,
            energy_gigatons=E_mt / 1000.0,
            crater_diameter_km=crater_d_km,
            crater_depth_km=crater_d_km / 3.0,
            crater_radius_km=crater_d_km / 2.0,
            seismic_magnitude=self.seismic_magnitude(),
            seismic_felt_radius_km=self.seismic_felt_radius_km(),
            fireball_diameter_km=thermal["fireball_diameter"],
            fireball_radius_km=thermal["fireball_radius"],
            thermal_ignition_radius_km=thermal["ignition"],
            thermal_3rd_degree_radius_km=thermal["third_degree_burn"],
            thermal_2nd_degree_radius_km=thermal["second_degree_burn"],
            air_blast_radius_km=severe,
            moderate_damage_radius_km=moderate,
            light_damage_radius_km=blast["psi_1"],
            lung_damage_radius_km=severe * 1.2,
            eardrums_rupture_radius_km=moderate,
            ef5_tornado_zone_km=severe,
            trees_blown_radius_km=moderate,
            jupiter_storm_zone_km=severe * 0.8,
            total_collapse_radius_km=severe,
            home_destruction_radius_km=moderate * 1.3,
            max_decibels=self.max_decibels(),
            peak_wind_speed_mph=PEAK_WIND_20PSI_MPH,
            affected_area_km2=pi * moderate**2,
            tsar_bomba_equivalent=E_mt / TSAR_BOMBA_MT,
            hiroshima_equivalent=E_mt / HIROSHIMA_MT,
            hurricane_comparison=E_mt > HURRICANE_MT,
            impact_frequency=self.impact_frequency(),
            tsunami_risk=self.tsunami_risk(),
        )
        bad = [k for k, v in effects.numeric_values().items() if not isfinite(v)]
        if bad:
            raise ComputationError(f"non-finite output for {', '.join(bad)} from {self.p}")
        return effects


def compute_impact_effects(diameter: float, velocity: float, angle: float,
                           density: float, lat: float, lon: float) -> ImpactEffects:
    """Validate the impactor and run every scaling law. Raises InvalidInput."""
    params = ImpactorParameters(diameter=diameter, velocity=velocity, angle=angle,
                                density=density, lat=lat, lon=lon)
    return ImpactModel(params).effects()
