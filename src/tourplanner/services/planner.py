"""Session state and the top-level compute boundary used by the UI shell."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

from ..data.places_repository import get_places, select_places
from ..models.domain import PointOfInterest
from .geospatial import Bounds, bounds_for
from .routing.errors import InvalidInputError, RoutePlannerError, RouteRenderError
from .routing.matrix import CostMatrixBuilder
from .routing.models import RoutePlan
from .routing.osrm_client import OSRMClient
from .routing.sequencer import RouteSequencer
from .routing.service import RouteRenderer, plan_route, render_route

logger = logging.getLogger(__name__)

BUSY_MESSAGE = "A route computation is already in progress."


@dataclass(frozen=True)
class PlannerSession:
    """Everything one planner view needs; replaced, never mutated."""

    places: tuple[PointOfInterest, ...]
    selected: frozenset[str] = frozenset()
    plan: Optional[RoutePlan] = None
    view_bounds: Optional[Bounds] = None
    message: Optional[str] = None

    @classmethod
    def start(cls, places: Iterable[PointOfInterest] | None = None) -> "PlannerSession":
        places = tuple(places) if places is not None else get_places()
        bounds = bounds_for([place.coordinates for place in places]) if places else None
        return cls(places=places, view_bounds=bounds)

    @property
    def selection(self) -> list[PointOfInterest]:
        return select_places(self.places, self.selected)

    def with_selected(self, names: Iterable[str]) -> "PlannerSession":
        names = frozenset(names)
        select_places(self.places, names)
        return replace(self, selected=names)

    def toggle(self, name: str) -> "PlannerSession":
        if name in self.selected:
            return replace(self, selected=self.selected - {name})
        return self.with_selected(self.selected | {name})


@dataclass
class RoutePlanner:
    """Runs compute requests one at a time and turns failures into messages.

    A request made while another is in flight is ignored. ``invalidate``
    bumps the request token so a result arriving for an outdated request is
    dropped instead of applied.
    """

    builder: CostMatrixBuilder
    renderer: Optional[RouteRenderer] = None
    sequencer: RouteSequencer = field(default_factory=RouteSequencer)
    travel_mode: Optional[str] = None
    _token: int = field(default=0, init=False, repr=False)
    _in_flight: bool = field(default=False, init=False, repr=False)

    @classmethod
    def with_osrm(cls, client: OSRMClient | None = None) -> "RoutePlanner":
        client = client or OSRMClient()
        return cls(builder=CostMatrixBuilder(client, unit=client.annotation), renderer=client)

    @property
    def busy(self) -> bool:
        return self._in_flight

    def invalidate(self) -> None:
        self._token += 1

    async def compute(self, session: PlannerSession) -> PlannerSession:
        if self._in_flight:
            logger.info("Ignoring compute request while another is in flight")
            return replace(session, message=BUSY_MESSAGE)

        self._in_flight = True
        self._token += 1
        token = self._token
        try:
            try:
                plan = await plan_route(
                    session.selection,
                    builder=self.builder,
                    sequencer=self.sequencer,
                    travel_mode=self.travel_mode,
                )
            except InvalidInputError as exc:
                logger.exception(f"Internal error while sequencing route: {exc}")
                return self._apply(session, token, plan=None, message=f"Internal error: {exc}")
            except RoutePlannerError as exc:
                logger.warning(f"Route computation failed: {exc}")
                return self._apply(session, token, plan=None, message=str(exc))

            if token != self._token:
                return self._apply(session, token, plan=plan, message=None)
            plan, message = await self._render(plan)
            return self._apply(session, token, plan=plan, message=message)
        finally:
            self._in_flight = False

    async def retry_render(self, session: PlannerSession) -> PlannerSession:
        """Re-render the last plan without rebuilding the matrix."""
        if session.plan is None:
            return replace(session, message="No computed route to render.")
        if self._in_flight:
            return replace(session, message=BUSY_MESSAGE)

        self._in_flight = True
        token = self._token
        try:
            plan, message = await self._render(session.plan)
            return self._apply(session, token, plan=plan, message=message)
        finally:
            self._in_flight = False

    async def _render(self, plan: RoutePlan) -> tuple[RoutePlan, Optional[str]]:
        if self.renderer is None:
            return plan, None
        try:
            return await render_route(plan, self.renderer), None
        except RouteRenderError as exc:
            return plan, str(exc)

    def _apply(
        self,
        session: PlannerSession,
        token: int,
        *,
        plan: Optional[RoutePlan],
        message: Optional[str],
    ) -> PlannerSession:
        if token != self._token:
            logger.info(f"Dropping stale route result for request {token} (latest {self._token})")
            return session
        return replace(
            session,
            plan=plan,
            view_bounds=plan.bounds if plan is not None else session.view_bounds,
            message=message,
        )
