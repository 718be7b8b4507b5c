"""Command-line access to the local trip store.

Usage:
    python -m trip_planner list [--owner ID] [--public]
    python -m trip_planner show TRIP_ID
    python -m trip_planner stats TRIP_ID
    python -m trip_planner route TRIP_ID [--mode MODE]
    python -m trip_planner publish TRIP_ID
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import List, Optional, Sequence

from .config import TRIPS_STORE_PATH
from .estimator import estimate, extras_for_trip, itinerary_points
from .models import TRANSPORT_MODES, Trip
from .repository import TripRepository
from .routing import RouteGeometryService
from .storage import JsonFileStore
from .sync import RemotePublishSynchronizer

LOGGER = logging.getLogger("trip_planner")


def _setup_logging(level: str) -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=getattr(logging, level),
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trip_planner",
        description="Inspect locally stored trips, estimate them and sync public ones",
    )
    parser.add_argument(
        "--store",
        default=TRIPS_STORE_PATH,
        help=f"Path to the local trip store (default: {TRIPS_STORE_PATH})",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Python logging level",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="List trips, newest first")
    list_cmd.add_argument("--owner", help="Only trips owned by this id")
    list_cmd.add_argument("--public", action="store_true", help="Only public trips")

    for name, help_text in (
        ("show", "Print a trip as JSON"),
        ("stats", "Estimate distance, time and days"),
        ("publish", "Push a public trip to the remote authority now"),
    ):
        cmd = commands.add_parser(name, help=help_text)
        cmd.add_argument("trip_id")

    route_cmd = commands.add_parser("route", help="Fetch road-following geometry")
    route_cmd.add_argument("trip_id")
    route_cmd.add_argument(
        "--mode",
        choices=TRANSPORT_MODES,
        help="Transport mode (default: the trip's saved mode)",
    )
    return parser


def _format_row(trip: Trip) -> str:
    visibility = "public" if trip.is_public else "private"
    return (
        f"{trip.id}\t{trip.name}\t{len(trip.places)} stops\t{visibility}\t"
        f"{trip.updated_at.isoformat()}"
    )


def _list(repository: TripRepository, args: argparse.Namespace) -> int:
    trips: List[Trip]
    if args.owner:
        trips = repository.list_by_owner(args.owner)
    elif args.public:
        trips = repository.list_public()
    else:
        trips = repository.list_all()
    if args.owner and args.public:
        trips = [trip for trip in trips if trip.is_public]
    for trip in trips:
        print(_format_row(trip))
    return 0


def _stats(trip: Trip) -> int:
    stats = estimate(trip, extras_for_trip(trip))
    print(f"Distance: {stats.total_distance_km:.1f} km")
    print(f"Travel time: {stats.total_time_hours:.1f} h")
    print(f"Recommended: {stats.estimated_days} day(s)")
    return 0


def _route(trip: Trip, mode: Optional[str]) -> int:
    waypoints = itinerary_points(trip, extras_for_trip(trip))
    result = RouteGeometryService().route(waypoints, mode or trip.transport_mode)
    if result.message:
        print(result.message)
    label = "routed" if result.routed else "straight-line"
    print(f"{len(result.points)} points ({label})")
    return 0


def _publish(trip: Trip) -> int:
    if not trip.is_public:
        LOGGER.error("Trip %s is private; nothing to publish", trip.id)
        return 1
    result = RemotePublishSynchronizer().publish(trip)
    if result.ok:
        print(f"Published {trip.id}")
        return 0
    print(result.warning)
    return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    _setup_logging(args.log_level)
    repository = TripRepository.open(JsonFileStore(args.store))

    if args.command == "list":
        return _list(repository, args)

    trip = repository.get(args.trip_id)
    if trip is None:
        LOGGER.error("Trip not found: %s", args.trip_id)
        return 1
    if args.command == "show":
        print(json.dumps(trip.to_dict(), indent=2, ensure_ascii=False))
        return 0
    if args.command == "stats":
        return _stats(trip)
    if args.command == "route":
        return _route(trip, args.mode)
    return _publish(trip)


__all__ = ["main"]
