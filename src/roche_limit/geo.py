"""Great-circle distances between capital cities."""
from __future__ import annotations

import math

import numpy as np
import pandas as pd

from roche_limit.config import EARTH_RADIUS_KM, WASHINGTON_DC
from roche_limit.errors import SchemaError

__all__ = ["distance", "add_distance"]

Point = tuple[float, float]


def distance(point_a: Point, point_b: Point) -> float:
    """
    Haversine distance in kilometres between two (lat, lon) points in degrees.

    The haversine term is clamped to [0, 1] so rounding for near-antipodal
    points cannot push asin outside its domain.
    """
    lat1, lon1 = map(math.radians, point_a)
    lat2, lon2 = map(math.radians, point_b)
    h = (
        math.sin((lat2 - lat1) / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin((lon2 - lon1) / 2) ** 2
    )
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))


def add_distance(
    coords: pd.DataFrame,
    reference: Point = WASHINGTON_DC,
    column: str = "distance_km",
) -> pd.DataFrame:
    """Return a copy of a coordinate table with a distance-to-reference column."""
    missing = [c for c in ("lat", "lon") if c not in coords.columns]
    if missing:
        raise SchemaError("coordinates", missing)

    lat1 = np.radians(coords["lat"].to_numpy(dtype=float))
    lon1 = np.radians(coords["lon"].to_numpy(dtype=float))
    lat2, lon2 = np.radians(reference[0]), np.radians(reference[1])

    h = (
        np.sin((lat2 - lat1) / 2) ** 2
        + np.cos(lat1) * np.cos(lat2) * np.sin((lon2 - lon1) / 2) ** 2
    )
    out = coords.copy()
    out[column] = 2 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(np.clip(h, 0.0, 1.0)))
    return out
