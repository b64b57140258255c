"""Cost matrix construction from per-origin distance queries."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Protocol, Sequence

from ...config import settings
from ...models.domain import PointOfInterest
from .errors import MatrixBuildError, ProviderError, SelectionTooSmallError
from .models import UNREACHABLE, CostMatrix, CostUnit

logger = logging.getLogger(__name__)


class DistanceProvider(Protocol):
    async def query(
        self,
        origin: tuple[float, float],
        destinations: Sequence[tuple[float, float]],
    ) -> Sequence[float | None]:
        """Return one cost per destination, None where no route exists."""
        ...


class CostMatrixBuilder:
    """Builds an n x n directed cost matrix, one provider query per origin.

    Origins are queried in selection order with at most ``max_concurrency``
    queries outstanding (1 by default, to stay inside provider quotas). The
    result does not depend on the concurrency level.
    """

    def __init__(
        self,
        provider: DistanceProvider,
        *,
        max_concurrency: int | None = None,
        unit: CostUnit | None = None,
    ) -> None:
        self.provider = provider
        self.max_concurrency = max_concurrency if max_concurrency is not None else settings.matrix_max_concurrency
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1.")
        self.unit: CostUnit = unit or settings.matrix_cost_annotation

    async def build(self, places: Sequence[PointOfInterest]) -> CostMatrix:
        if len(places) < 2:
            raise SelectionTooSmallError(len(places))

        destinations = [place.coordinates for place in places]
        logger.info(f"Building {len(places)}x{len(places)} {self.unit} matrix (concurrency {self.max_concurrency})")

        if self.max_concurrency == 1:
            rows = []
            for index in range(len(places)):
                rows.append(await self._query_row(index, destinations))
        else:
            rows = await self._query_rows_concurrently(destinations)

        matrix = CostMatrix(costs=rows, unit=self.unit)
        unreachable = matrix.unreachable_pairs()
        if unreachable:
            logger.warning(f"{len(unreachable)} place pairs have no route: {unreachable}")
        return matrix

    async def _query_rows_concurrently(self, destinations: list[tuple[float, float]]) -> list[list[float]]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(index: int) -> list[float]:
            async with semaphore:
                return await self._query_row(index, destinations)

        results = await asyncio.gather(
            *(bounded(index) for index in range(len(destinations))),
            return_exceptions=True,
        )
        # Report the lowest failing origin, as a sequential build would.
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return list(results)

    async def _query_row(self, origin_index: int, destinations: list[tuple[float, float]]) -> list[float]:
        try:
            costs = await self.provider.query(destinations[origin_index], destinations)
        except ProviderError as exc:
            logger.warning(f"Distance query failed for origin {origin_index}: {exc}")
            raise MatrixBuildError(origin_index, str(exc)) from exc

        if len(costs) != len(destinations):
            raise MatrixBuildError(
                origin_index,
                f"provider returned {len(costs)} costs for {len(destinations)} destinations",
            )
        return [UNREACHABLE if cost is None or math.isnan(cost) else float(cost) for cost in costs]
