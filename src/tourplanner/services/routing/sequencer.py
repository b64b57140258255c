"""Nearest-neighbour visit ordering over a cost matrix.

The tour always starts at index 0, the first selected place in working-set
order, and never returns to it. At each step the cheapest unvisited place is
taken; ties go to the lower index.

Known limitation: when every unvisited place is unreachable from the current
one, the lowest-index unvisited place is taken. On a disconnected matrix the
tail of the route therefore falls back to selection order.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from .errors import InvalidInputError
from .models import CostMatrix, Route

logger = logging.getLogger(__name__)


def _validate(costs: Sequence[Sequence[float]]) -> int:
    n = len(costs)
    if n < 2:
        raise InvalidInputError(f"Cost matrix must cover at least 2 places, got {n}.")
    for index, row in enumerate(costs):
        if len(row) != n:
            raise InvalidInputError(f"Cost matrix is not square: row {index} has {len(row)} entries, expected {n}.")
    return n


def nearest_neighbor_order(costs: Sequence[Sequence[float]]) -> list[int]:
    n = _validate(costs)
    visited = [False] * n
    order = [0]
    visited[0] = True

    while len(order) < n:
        last = order[-1]
        best = -1
        best_cost = math.inf
        for j in range(n):
            if visited[j]:
                continue
            if best == -1 or costs[last][j] < best_cost:
                best = j
                best_cost = costs[last][j]
        if math.isinf(best_cost):
            logger.warning(f"No reachable place left from index {last}; falling back to index {best}")
        order.append(best)
        visited[best] = True

    return order


class RouteSequencer:
    """Turns a ``CostMatrix`` into a ``Route``."""

    def sequence(self, matrix: CostMatrix | Sequence[Sequence[float]]) -> Route:
        costs = matrix.costs if isinstance(matrix, CostMatrix) else matrix
        order = nearest_neighbor_order(costs)
        legs = tuple(costs[a][b] for a, b in zip(order, order[1:]))
        return Route(order=tuple(order), leg_costs=legs)
