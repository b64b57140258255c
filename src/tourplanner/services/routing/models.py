"""Routing domain models."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Literal, Optional

from ...models.domain import PointOfInterest
from ..geospatial import Bounds

UNREACHABLE = math.inf

CostUnit = Literal["distance", "duration"]


@dataclass(slots=True)
class CostMatrix:
    """Directed travel costs between the places of a selection.

    ``costs[i][j]`` is the cost from selection[i] to selection[j]; the
    diagonal is never consulted and ``UNREACHABLE`` marks missing routes.
    """

    costs: List[List[float]]
    unit: CostUnit = "distance"

    @property
    def size(self) -> int:
        return len(self.costs)

    def cost(self, origin: int, destination: int) -> float:
        return self.costs[origin][destination]

    def unreachable_pairs(self) -> list[tuple[int, int]]:
        return [
            (i, j)
            for i, row in enumerate(self.costs)
            for j, value in enumerate(row)
            if i != j and math.isinf(value)
        ]


@dataclass(slots=True)
class Route:
    """Visiting order over selection indices, anchored at index 0."""

    order: tuple[int, ...]
    leg_costs: tuple[float, ...]

    @property
    def total_cost(self) -> float:
        return math.fsum(self.leg_costs) if all(math.isfinite(c) for c in self.leg_costs) else UNREACHABLE

    @property
    def has_unreachable_leg(self) -> bool:
        return any(math.isinf(cost) for cost in self.leg_costs)


@dataclass(slots=True)
class RenderedRoute:
    geometry: List[tuple[float, float]]
    distance_m: float
    duration_s: float


@dataclass(slots=True)
class RoutePlan:
    selection: List[PointOfInterest]
    matrix: CostMatrix
    route: Route
    maps_url: str
    bounds: Bounds
    rendered: Optional[RenderedRoute] = None
    metadata: dict = field(default_factory=dict)

    @property
    def ordered_places(self) -> list[PointOfInterest]:
        return [self.selection[index] for index in self.route.order]
