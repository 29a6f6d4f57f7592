from __future__ import annotations

import logging
import math

logger = logging.getLogger(__name__)

EARTH_MEAN_RADIUS_KM = 6371.0088

# (zone name, ImpactEffects attribute) drawn outermost first
ZONE_RINGS = (
    ("light_damage", "light_damage_radius_km"),
    ("moderate_damage", "moderate_damage_radius_km"),
    ("thermal_ignition", "thermal_ignition_radius_km"),
    ("severe_damage", "air_blast_radius_km"),
    ("fireball", "fireball_radius_km"),
    ("crater", "crater_radius_km"),
)


def _destination_point(lon_deg: float, lat_deg: float, bearing_rad: float, distance_km: float):
    """Point reached from (lon,lat) going 'distance_km' along 'bearing_rad' on a sphere."""
    δ = distance_km / EARTH_MEAN_RADIUS_KM
    φ1 = math.radians(lat_deg)
    λ1 = math.radians(lon_deg)
    θ = bearing_rad

    sinφ2 = math.sin(φ1)*math.cos(δ) + math.cos(φ1)*math.sin(δ)*math.cos(θ)
    φ2 = math.asin(max(-1.0, min(1.0, sinφ2)))
    y = math.sin(θ)*math.sin(δ)*math.cos(φ1)
    x = math.cos(δ) - math.sin(φ1)*math.sin(φ2)
    λ2 = λ1 + math.atan2(y, x)
    # normalize lon to [-180, 180)
    lon2 = math.degrees((λ2 + math.pi) % (2*math.pi) - math.pi)
    lat2 = math.degrees(φ2)
    return lon2, lat2


def circle_ring(lon: float, lat: float, radius_km: float, steps: int = 64) -> list:
    """Closed ring of [lon, lat] pairs approximating a circle on the sphere."""
    coords = []
    for i in range(steps + 1):
        b = 2 * math.pi * (i / steps)
        coords.append(list(_destination_point(lon, lat, b, radius_km)))
    coords[-1] = coords[0]
    return coords


def zone_feature(name: str, lon: float, lat: float, radius_km: float, steps: int = 64) -> dict:
    return {
        "type": "Feature",
        "properties": {"zone": name, "radius_km": radius_km},
        "geometry": {"type": "Polygon", "coordinates": [circle_ring(lon, lat, radius_km, steps)]},
    }


def zones_feature_collection(effects, steps: int = 64) -> dict:
    """GeoJSON rings for every non-empty damage zone of an ``ImpactEffects``."""
    lat, lon = effects.params.lat, effects.params.lon
    features = []
    for name, attr in ZONE_RINGS:
        radius_km = getattr(effects, attr)
        if radius_km <= 0.0:
            continue
        features.append(zone_feature(name, lon, lat, radius_km, steps))
    logger.debug("[geojson.zones] center=[%s,%s] rings=%d steps=%d", lon, lat, len(features), steps)
    return {"type": "FeatureCollection", "features": features}
