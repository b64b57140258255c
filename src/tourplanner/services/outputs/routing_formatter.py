"""Serializers for route plans."""

from __future__ import annotations

import csv
import io
import math

from ...schemas.routing import (
    BoundsModel,
    PlaceModel,
    RenderedRouteModel,
    RoutePlanResponse,
    RouteStopModel,
)
from ..routing.models import RoutePlan


def _finite_or_none(value: float) -> float | None:
    return value if math.isfinite(value) else None


def route_plan_to_response(plan: RoutePlan) -> RoutePlanResponse:
    stops = []
    for sequence, index in enumerate(plan.route.order, start=1):
        place = plan.selection[index]
        leg_cost = plan.route.leg_costs[sequence - 2] if sequence > 1 else math.inf
        stops.append(
            RouteStopModel(
                sequence=sequence,
                selection_index=index,
                place=PlaceModel(
                    name=place.name,
                    latitude=place.latitude,
                    longitude=place.longitude,
                    address=place.address,
                    place_id=place.place_id,
                ),
                cost_from_prev=_finite_or_none(leg_cost),
            )
        )

    rendered = None
    if plan.rendered is not None:
        rendered = RenderedRouteModel(
            distance_km=plan.rendered.distance_m / 1000.0,
            duration_min=plan.rendered.duration_s / 60.0,
            geometry=plan.rendered.geometry,
        )

    return RoutePlanResponse(
        cost_unit=plan.matrix.unit,
        total_cost=_finite_or_none(plan.route.total_cost),
        order=list(plan.route.order),
        stops=stops,
        maps_url=plan.maps_url,
        bounds=BoundsModel(
            south=plan.bounds.south,
            west=plan.bounds.west,
            north=plan.bounds.north,
            east=plan.bounds.east,
        ),
        rendered=rendered,
        metadata=plan.metadata,
    )


def route_plan_to_json(plan: RoutePlan) -> dict:
    return route_plan_to_response(plan).model_dump(mode="json")


def route_plan_to_csv(plan: RoutePlan) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "sequence",
        "name",
        "latitude",
        "longitude",
        "address",
        "place_id",
        "cost_from_prev",
        "cost_unit",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for stop in route_plan_to_response(plan).stops:
        writer.writerow(
            {
                "sequence": stop.sequence,
                "name": stop.place.name,
                "latitude": stop.place.latitude,
                "longitude": stop.place.longitude,
                "address": stop.place.address or "",
                "place_id": stop.place.place_id or "",
                "cost_from_prev": "" if stop.cost_from_prev is None else stop.cost_from_prev,
                "cost_unit": plan.matrix.unit,
            }
        )
    return buffer.getvalue()
