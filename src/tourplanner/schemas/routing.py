"""Route plan payloads handed to the UI shell."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class PlaceModel(BaseModel):
    name: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: Optional[str] = None
    place_id: Optional[str] = None


class RouteStopModel(BaseModel):
    sequence: int
    selection_index: int
    place: PlaceModel
    cost_from_prev: Optional[float] = Field(
        default=None,
        description="Matrix cost of the leg ending here; None for the first stop or an unreachable leg.",
    )


class BoundsModel(BaseModel):
    south: float
    west: float
    north: float
    east: float


class RenderedRouteModel(BaseModel):
    distance_km: float
    duration_min: float
    geometry: List[tuple[float, float]]


class RoutePlanResponse(BaseModel):
    cost_unit: str
    total_cost: Optional[float] = Field(default=None, description="None when any leg is unreachable.")
    order: List[int]
    stops: List[RouteStopModel]
    maps_url: str
    bounds: BoundsModel
    rendered: Optional[RenderedRouteModel] = None
    metadata: dict = Field(default_factory=dict)
