"""Shareable Google Maps directions links."""

from __future__ import annotations

from typing import Sequence
from urllib.parse import urlencode

from ...config import settings
from ...models.domain import PointOfInterest

GOOGLE_MAPS_DIRECTIONS_URL = "https://www.google.com/maps/dir/"


def _coords(place: PointOfInterest) -> str:
    return f"{place.latitude},{place.longitude}"


def build_directions_url(places: Sequence[PointOfInterest], travel_mode: str | None = None) -> str:
    """Encode an ordered tour as a Google Maps directions URL.

    The first place is the origin, the last the destination and the rest are
    waypoints in visiting order. Place ids are added alongside coordinates
    when every place in the relevant slot carries one.
    """
    if len(places) < 2:
        raise ValueError("At least two places are required for a directions link.")

    origin, destination, waypoints = places[0], places[-1], list(places[1:-1])
    params: list[tuple[str, str]] = [
        ("api", "1"),
        ("origin", _coords(origin)),
        ("destination", _coords(destination)),
    ]
    if origin.place_id:
        params.append(("origin_place_id", origin.place_id))
    if destination.place_id:
        params.append(("destination_place_id", destination.place_id))
    if waypoints:
        params.append(("waypoints", "|".join(_coords(place) for place in waypoints)))
        if all(place.place_id for place in waypoints):
            params.append(("waypoint_place_ids", "|".join(place.place_id for place in waypoints)))
    params.append(("travelmode", travel_mode or settings.maps_travel_mode))

    return f"{GOOGLE_MAPS_DIRECTIONS_URL}?{urlencode(params, safe=',|')}"
