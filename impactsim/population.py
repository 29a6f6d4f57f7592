"""
Gridded population density with inverse-distance-weighted lookup.

The CSV holds one sample per row (``lat``, ``lng``, ``pop`` in people/km^2).
A query point takes the samples within ``SEARCH_RADIUS_DEG`` (planar degree
distance), keeps at most ``MAX_NEIGHBOURS`` of the nearest, and averages their
densities with weights ``1 / (distance + DISTANCE_EPSILON_DEG)``. No sample
within range means open water and a density of 0.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import numpy as np
import pandas as pd

from .cache import TTLCache, coordinate_key
from .errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

SEARCH_RADIUS_DEG = 2.0
MAX_NEIGHBOURS = 50
DISTANCE_EPSILON_DEG = 0.01
CSV_COLUMNS = ("lat", "lng", "pop")


class DensityProvider(Protocol):
    def lookup_density(self, lat: float, lon: float) -> Optional[float]:
        ...


class PopulationGrid:
    def __init__(self, lats, lons, densities):
        self._lat = np.asarray(lats, dtype=float)
        self._lon = np.asarray(lons, dtype=float)
        self._pop = np.asarray(densities, dtype=float)
        if not (self._lat.shape == self._lon.shape == self._pop.shape):
            raise ValueError("lats, lons and densities must have the same length")

    def __len__(self) -> int:
        return int(self._pop.size)

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "PopulationGrid":
        missing = [c for c in CSV_COLUMNS if c not in df.columns]
        if missing:
            raise UpstreamUnavailable(f"population data missing columns {missing}")
        clean = df[list(CSV_COLUMNS)].apply(pd.to_numeric, errors="coerce").dropna()
        dropped = len(df) - len(clean)
        if dropped:
            logger.warning("[population] dropped %d unparseable rows", dropped)
        return cls(clean["lat"].to_numpy(), clean["lng"].to_numpy(), clean["pop"].to_numpy())

    @classmethod
    def from_csv(cls, path: str) -> "PopulationGrid":
        try:
            df = pd.read_csv(path)
        except (OSError, ValueError) as e:
            raise UpstreamUnavailable(f"cannot read population data from {path}: {e}") from e
        grid = cls.from_frame(df)
        logger.info("[population] loaded rows=%d path=%s", len(grid), path)
        return grid

    def lookup_density(self, lat: float, lon: float) -> Optional[float]:
        """People/km^2 at (lat, lon); None when the grid holds no samples at all."""
        if len(self) == 0:
            return None
        dist = np.hypot(lat - self._lat, lon - self._lon)
        idx = np.flatnonzero(dist <= SEARCH_RADIUS_DEG)
        if idx.size == 0:
            return 0.0
        if idx.size > MAX_NEIGHBOURS:
            idx = idx[np.argsort(dist[idx], kind="stable")[:MAX_NEIGHBOURS]]
        weights = 1.0 / (dist[idx] + DISTANCE_EPSILON_DEG)
        return float(np.sum(weights * self._pop[idx]) / np.sum(weights))


def density_or_none(provider: Optional[DensityProvider], lat: float, lon: float,
                    cache: Optional[TTLCache] = None, precision: int = 2) -> Optional[float]:
    """
    Measured density for the casualty model, or None to fall back to the
    geographic estimate. Lookups are made for the rounded cache cell so that
    cached and fresh answers agree.
    """
    if provider is None:
        return None
    key = coordinate_key(lat, lon, precision)
    try:
        if cache is None:
            return provider.lookup_density(*key)
        return cache.get_or_compute(key, lambda: provider.lookup_density(*key))
    except UpstreamUnavailable as e:
        logger.warning("[population.fallback] lat=%s lon=%s error=%s", lat, lon, e)
        return None
