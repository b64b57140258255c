"""Routing orchestration service."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Protocol, Sequence

from ...models.domain import PointOfInterest
from ..geospatial import bounds_for
from ..outputs.maps_link import build_directions_url
from .errors import ProviderError, RouteRenderError, SelectionTooSmallError
from .matrix import CostMatrixBuilder
from .models import RenderedRoute, RoutePlan
from .sequencer import RouteSequencer

logger = logging.getLogger(__name__)


class RouteRenderer(Protocol):
    async def route(self, coordinates: Sequence[tuple[float, float]]) -> RenderedRoute:
        ...


async def plan_route(
    selection: Sequence[PointOfInterest],
    *,
    builder: CostMatrixBuilder,
    sequencer: RouteSequencer | None = None,
    travel_mode: str | None = None,
) -> RoutePlan:
    """Build the cost matrix for ``selection`` and order it nearest-neighbour first.

    The returned plan has no rendered geometry; see ``render_route``.
    """
    selection = list(selection)
    if len(selection) < 2:
        raise SelectionTooSmallError(len(selection))

    sequencer = sequencer or RouteSequencer()
    matrix = await builder.build(selection)
    route = sequencer.sequence(matrix)
    if route.has_unreachable_leg:
        logger.warning(f"Route {list(route.order)} contains unreachable legs; order past them follows selection order")

    ordered = [selection[index] for index in route.order]
    logger.info(f"Planned route over {len(selection)} places: {' -> '.join(place.name for place in ordered)}")

    return RoutePlan(
        selection=selection,
        matrix=matrix,
        route=route,
        maps_url=build_directions_url(ordered, travel_mode),
        bounds=bounds_for([place.coordinates for place in ordered]),
        metadata={
            "anchor": selection[0].name,
            "place_count": len(selection),
            "cost_unit": matrix.unit,
            "unreachable_pairs": len(matrix.unreachable_pairs()),
        },
    )


async def render_route(plan: RoutePlan, renderer: RouteRenderer) -> RoutePlan:
    """Ask the rendering provider for a drivable path through the planned order.

    On failure the plan itself stays valid and rendering can simply be retried.
    """
    coordinates = [place.coordinates for place in plan.ordered_places]
    try:
        rendered = await renderer.route(coordinates)
    except ProviderError as exc:
        logger.warning(f"Rendering route failed: {exc}")
        raise RouteRenderError(exc.status, exc.message or None) from exc
    return replace(plan, rendered=rendered)
