"""Data access helpers for loading the working set of places."""

from __future__ import annotations

import csv
import functools
import io
import logging
import math
from pathlib import Path
from typing import Iterable, Optional, Sequence

from ..config import settings
from ..models.domain import PointOfInterest

logger = logging.getLogger(__name__)

DEFAULT_PLACES: tuple[PointOfInterest, ...] = (
    PointOfInterest("079 | Stories", 23.0353928, 72.4947591),
    PointOfInterest("Archer Art Gallery", 23.04166188, 72.55184877),
    PointOfInterest("Arthshila Ahmedabad", 23.029595, 72.5372661),
    PointOfInterest("Basera", 23.03008, 72.57936),
    PointOfInterest("Conflictorium", 23.03534, 72.58649),
    PointOfInterest("Darpana Academy", 23.0477, 72.57277),
    PointOfInterest("Hutheesing Visual Art Centre", 23.03724, 72.54969),
    PointOfInterest("Iram Art Gallery", 23.02874, 72.49185),
    PointOfInterest("Kanoria Centre for Arts", 23.0375, 72.54908),
    PointOfInterest("Kasturbhai Lalbhai Museum", 23.05223, 72.59307),
    PointOfInterest("LD Museum Director Bunglow", 23.03422, 72.55094),
    PointOfInterest("Mehnat Manzil: Museum of Work", 22.99835, 72.53732),
    PointOfInterest("Samara Art Gallery", 23.04347, 72.55721),
    PointOfInterest("Shreyas Foundation", 23.01436, 72.53993),
    PointOfInterest("Studio Sangath / Vastushilpa Sangath LLP", 23.04791, 72.52645),
)

# Accepted header spellings, compared lower-cased and stripped.
NAME_COLUMNS = ("name", "place", "title")
LATITUDE_COLUMNS = ("latitude", "lat")
LONGITUDE_COLUMNS = ("longitude", "lon", "lng")
ADDRESS_COLUMNS = ("address",)
PLACE_ID_COLUMNS = ("place_id", "placeid", "google_place_id")


def _pick(row: dict[str, str], columns: Iterable[str]) -> str:
    for column in columns:
        value = (row.get(column) or "").strip()
        if value:
            return value
    return ""


def _coerce_coordinate(value: str, limit: float) -> Optional[float]:
    try:
        number = float(value)
    except ValueError:
        return None
    if not math.isfinite(number) or abs(number) > limit:
        return None
    return number


def parse_places_csv(text: str) -> tuple[PointOfInterest, ...]:
    """Parse delimited text into places, silently skipping malformed rows."""

    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    if not reader.fieldnames:
        raise ValueError("Places file is missing a header row.")
    headers = {name.strip().lower() for name in reader.fieldnames if name}
    for label, columns in (("name", NAME_COLUMNS), ("latitude", LATITUDE_COLUMNS), ("longitude", LONGITUDE_COLUMNS)):
        if not headers.intersection(columns):
            raise ValueError(f"Places file header must include a {label} column.")

    places: list[PointOfInterest] = []
    seen: set[str] = set()
    for line_number, raw in enumerate(reader, start=2):
        row = {(key or "").strip().lower(): (value or "") for key, value in raw.items() if isinstance(value, str)}
        name = _pick(row, NAME_COLUMNS)
        lat = _coerce_coordinate(_pick(row, LATITUDE_COLUMNS), 90.0)
        lon = _coerce_coordinate(_pick(row, LONGITUDE_COLUMNS), 180.0)
        if not name or lat is None or lon is None:
            logger.debug(f"Skipping malformed place row {line_number}: {raw}")
            continue
        if name in seen:
            logger.debug(f"Skipping duplicate place '{name}' on row {line_number}")
            continue
        seen.add(name)
        places.append(
            PointOfInterest(
                name=name,
                latitude=lat,
                longitude=lon,
                address=_pick(row, ADDRESS_COLUMNS) or None,
                place_id=_pick(row, PLACE_ID_COLUMNS) or None,
            )
        )
    return tuple(places)


@functools.lru_cache(maxsize=4)
def load_places(source: Path) -> tuple[PointOfInterest, ...]:
    """Load places from a CSV file."""

    if not source.exists():
        raise FileNotFoundError(f"Places file not found: {source}")
    places = parse_places_csv(source.read_text(encoding="utf-8-sig"))
    logger.info(f"Loaded {len(places)} places from {source}")
    return places


def get_places() -> tuple[PointOfInterest, ...]:
    """Return the configured working set, falling back to the built-in list."""

    if settings.places_file:
        return load_places(settings.places_file)
    return DEFAULT_PLACES


def select_places(places: Sequence[PointOfInterest], names: Iterable[str]) -> list[PointOfInterest]:
    """Return the named places in working-set order."""

    wanted = {name.strip() for name in names}
    known = {place.name for place in places}
    missing = sorted(wanted - known)
    if missing:
        raise ValueError(f"Unknown places: {', '.join(missing)}")
    return [place for place in places if place.name in wanted]
