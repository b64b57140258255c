"""Domain models for points of interest."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class PointOfInterest:
    """A named, geocoded place the user can add to a tour."""

    name: str
    latitude: float
    longitude: float
    address: Optional[str] = None
    place_id: Optional[str] = None

    @property
    def coordinates(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)
