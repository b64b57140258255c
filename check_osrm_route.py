#!/usr/bin/env python3
"""Manual script to plan a tour against a live OSRM server."""

import asyncio
import logging
import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from tourplanner.config import settings
from tourplanner.services.planner import PlannerSession, RoutePlanner


async def run(names: list[str]) -> int:
    print("=" * 60)
    print("OSRM Route Planning Check")
    print("=" * 60)
    print()

    print(f"   [OK] OSRM Base URL: {settings.osrm_base_url}")
    print(f"   [OK] OSRM Profile: {settings.osrm_profile}")
    print(f"   [OK] Cost annotation: {settings.matrix_cost_annotation}")
    print()

    session = PlannerSession.start()
    if not names:
        names = [place.name for place in session.places[:4]]
    try:
        session = session.with_selected(names)
    except ValueError as e:
        print(f"   [ERROR] {e}")
        return 1

    planner = RoutePlanner.with_osrm()
    session = await planner.compute(session)
    if session.plan is None:
        print(f"   [ERROR] {session.message}")
        return 1

    for number, place in enumerate(session.plan.ordered_places, start=1):
        print(f"   {number:>2}. {place.name}")
    print()
    print(f"   Total cost: {session.plan.route.total_cost:.0f} ({session.plan.matrix.unit})")
    if session.plan.rendered is not None:
        print(f"   Driving distance: {session.plan.rendered.distance_m / 1000:.1f} km")
    if session.message:
        print(f"   [WARN] {session.message}")
    print(f"   Link: {session.plan.maps_url}")
    print()
    print("=" * 60)
    print("[SUCCESS] Route planned")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(asyncio.run(run(sys.argv[1:])))
