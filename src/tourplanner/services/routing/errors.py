"""Error taxonomy for route planning."""

from __future__ import annotations


class RoutePlannerError(Exception):
    """Base class for failures surfaced by the planner."""


class SelectionTooSmallError(RoutePlannerError):
    def __init__(self, count: int, minimum: int = 2) -> None:
        self.count = count
        self.minimum = minimum
        super().__init__(f"Select at least {minimum} places (got {count}).")


class MatrixBuildError(RoutePlannerError):
    """A distance query failed for one origin; no matrix is produced."""

    def __init__(self, origin_index: int, reason: str) -> None:
        self.origin_index = origin_index
        self.reason = reason
        super().__init__(f"Error building distance matrix at origin {origin_index}: {reason}")


class InvalidInputError(RoutePlannerError):
    """Malformed matrix handed to the sequencer. Signals a programming defect."""


class RouteRenderError(RoutePlannerError):
    """The rendering provider rejected an already computed route."""

    def __init__(self, status: str, message: str | None = None) -> None:
        self.status = status
        super().__init__(f"Directions request failed: {status}" + (f" ({message})" if message else ""))


class ProviderError(Exception):
    """Call-level failure reported by a distance or rendering provider."""

    def __init__(self, status: str, message: str = "") -> None:
        self.status = status
        self.message = message
        super().__init__(f"{status}: {message}" if message else status)
