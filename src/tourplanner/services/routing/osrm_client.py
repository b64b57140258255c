"""Async HTTP client for the OSRM table and route services."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

import httpx

from ...config import settings
from .errors import ProviderError
from .models import CostUnit, RenderedRoute

logger = logging.getLogger(__name__)

# Statuses worth retrying; anything else in the 4xx range is a bad query.
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def _coordinate_path(coordinates: Sequence[tuple[float, float]]) -> str:
    # OSRM expects "lon,lat;lon,lat;..."
    return ";".join(f"{lon},{lat}" for lat, lon in coordinates)


def _error_status(response: httpx.Response) -> tuple[str, str]:
    try:
        data = response.json()
    except ValueError:
        return f"HTTP_{response.status_code}", response.text[:200]
    if not isinstance(data, dict):
        return f"HTTP_{response.status_code}", response.text[:200]
    return str(data.get("code") or f"HTTP_{response.status_code}"), str(data.get("message", ""))


class OSRMClient:
    """Distance and route-rendering provider backed by an OSRM server.

    A fresh ``httpx.AsyncClient`` is opened per call so the client can be
    shared freely between coroutines.
    """

    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        annotation: CostUnit | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self.annotation: CostUnit = annotation or settings.matrix_cost_annotation
        self._transport = transport

    def _get_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        )

    async def _get_json(self, url: str, params: dict[str, str]) -> dict[str, Any]:
        """GET ``url`` with retries; return the decoded body of an "Ok" response."""
        async with self._get_client() as client:
            attempt = 0
            while True:
                try:
                    response = await client.get(url, params=params)
                    if response.status_code >= 400:
                        if response.status_code not in RETRYABLE_STATUS_CODES:
                            raise ProviderError(*_error_status(response))
                        response.raise_for_status()
                    data = response.json()
                    if not isinstance(data, dict):
                        raise ProviderError("INVALID_RESPONSE", f"Expected a JSON object from OSRM, got {type(data).__name__}.")
                    if data.get("code") != "Ok":
                        raise ProviderError(str(data.get("code", "UNKNOWN")), str(data.get("message", "")))
                    return data
                except httpx.HTTPStatusError as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        status, message = _error_status(e.response)
                        raise ProviderError(status, message) from e
                    await asyncio.sleep(self.backoff_seconds * attempt)
                except httpx.TimeoutException as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"OSRM request timed out after {self.max_retries} retries: {e}")
                        raise ProviderError("TIMEOUT", str(e)) from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM request timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    await asyncio.sleep(wait_time)
                except httpx.TransportError as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ProviderError(
                            "UNAVAILABLE", f"Failed to connect to OSRM service at {self.base_url}: {e}"
                        ) from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    await asyncio.sleep(wait_time)
                except ValueError as e:
                    # Undecodable body on a 2xx response
                    raise ProviderError("INVALID_RESPONSE", str(e)) from e

    async def query(
        self,
        origin: tuple[float, float],
        destinations: Sequence[tuple[float, float]],
    ) -> list[float | None]:
        """Return the cost from ``origin`` to each destination; None where OSRM found no route."""
        if not destinations:
            raise ValueError("At least one destination is required for OSRM table.")

        coordinates = [origin, *destinations]
        params = {
            "annotations": self.annotation,
            "sources": "0",
            "destinations": ";".join(str(i) for i in range(1, len(coordinates))),
        }
        url = f"{self.base_url}/table/v1/{self.profile}/{_coordinate_path(coordinates)}"
        data = await self._get_json(url, params)

        rows = data.get(f"{self.annotation}s")
        try:
            row = rows[0]
            if len(row) != len(destinations):
                raise ValueError(f"expected {len(destinations)} {self.annotation}s, got {len(row)}")
            return [None if value is None else float(value) for value in row]
        except (TypeError, ValueError, IndexError, KeyError) as e:
            raise ProviderError("INVALID_RESPONSE", f"Malformed OSRM table {self.annotation}s: {e}") from e

    async def route(self, coordinates: Sequence[tuple[float, float]]) -> RenderedRoute:
        """Get the street-following path through ``coordinates`` in the given order."""
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required for OSRM route.")

        params = {
            "overview": "full",
            "geometries": "polyline",
            "steps": "false",
        }
        url = f"{self.base_url}/route/v1/{self.profile}/{_coordinate_path(coordinates)}"
        data = await self._get_json(url, params)

        routes = data.get("routes") or []
        if not routes:
            raise ProviderError("NoRoute", "OSRM returned no routes.")
        try:
            best = routes[0]
            return RenderedRoute(
                geometry=decode_polyline(best.get("geometry", "")),
                distance_m=float(best.get("distance", 0.0)),
                duration_s=float(best.get("duration", 0.0)),
            )
        except (AttributeError, TypeError, ValueError, IndexError, KeyError) as e:
            raise ProviderError("INVALID_RESPONSE", f"Malformed OSRM route: {e}") from e


def decode_polyline(polyline: str) -> list[tuple[float, float]]:
    """Decode a Google-encoded polyline (precision 5) into (lat, lon) pairs."""
    coordinates = []
    index = 0
    lat = 0
    lon = 0

    while index < len(polyline):
        deltas = []
        for _ in range(2):
            shift = 0
            result = 0
            while True:
                b = ord(polyline[index]) - 63
                index += 1
                result |= (b & 0x1f) << shift
                shift += 5
                if b < 0x20:
                    break
            deltas.append(~(result >> 1) if (result & 1) else (result >> 1))
        lat += deltas[0]
        lon += deltas[1]
        coordinates.append((lat / 1e5, lon / 1e5))

    return coordinates
