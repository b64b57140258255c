"""Geospatial helper functions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from shapely.geometry import MultiPoint


@dataclass(frozen=True, slots=True)
class Bounds:
    """Lat/lon envelope used to fit the map view."""

    south: float
    west: float
    north: float
    east: float

    @property
    def center(self) -> tuple[float, float]:
        return ((self.south + self.north) / 2, (self.west + self.east) / 2)


def bounds_for(coordinates: Sequence[tuple[float, float]]) -> Bounds:
    """Return the envelope enclosing the given (lat, lon) pairs."""

    if not coordinates:
        raise ValueError("At least one coordinate is required to compute bounds.")
    # shapely works in (x, y) = (lon, lat)
    min_lon, min_lat, max_lon, max_lat = MultiPoint([(lon, lat) for lat, lon in coordinates]).bounds
    return Bounds(south=min_lat, west=min_lon, north=max_lat, east=max_lon)
