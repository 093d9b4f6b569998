# ABOUTME: Command-line entry point that plans a route and prints its weather overlay.
# ABOUTME: Reveals every waypoint in order, waits for the fetches, then prints cards and advisories.

import argparse
import asyncio
import logging
import sys

from skyroute import config
from skyroute.deps import create_deps
from skyroute.errors import SkyRouteError
from skyroute.models import FetchStatus
from skyroute.planner import TripPlanner, WaypointCard
from skyroute.signals import ReplayVisibility, StaticNetworkQuality

logger = logging.getLogger(__name__)


def format_card(card: WaypointCard) -> str:
    coord = f"({card.coordinate.latitude:.4f}, {card.coordinate.longitude:.4f})"
    if card.status == FetchStatus.FAILED:
        return f"{card.title} {coord}: {card.error}"
    if card.status != FetchStatus.RESOLVED or card.payload is None:
        return f"{card.title} {coord}: loading"
    p = card.payload
    parts = [f"{card.title} {coord} [{p.condition}] {p.temperature}°C (feels {p.feels_like}°C)"]
    if p.description:
        parts.append(p.description)
    parts.append(f"humidity {p.humidity}%")
    parts.append(f"wind {p.wind_speed} m/s")
    parts.append(f"pressure {p.pressure} hPa")
    # Provider reports visibility in metres
    visibility = f"{p.visibility / 1000:.1f} km" if p.visibility is not None else "n/a"
    parts.append(f"visibility {visibility}")
    parts.append(p.place_name or "Unknown")
    return ", ".join(parts)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="skyroute", description="Plan a route with weather along the way.")
    parser.add_argument("start", help="Starting location")
    parser.add_argument("end", help="Destination")
    parser.add_argument(
        "--connection",
        default=config.DEFAULT_CONNECTION,
        help="Effective connection type (slow-2g, 2g, 3g, 4g, 5g); slow types sample fewer waypoints",
    )
    parser.add_argument("--hour", type=int, choices=range(24), metavar="HOUR", help="Local hour of departure")
    return parser


async def run(args: argparse.Namespace) -> int:
    deps = create_deps()
    planner = TripPlanner(deps, network=StaticNetworkQuality(args.connection))
    try:
        try:
            route = await planner.submit(args.start, args.end)
        except SkyRouteError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        print(f"Route: {route.distance_km}km, {route.duration_minutes} minutes")
        if not planner.has_weather_overlay:
            print("No weather overlay available for this route")
        await planner.watch(ReplayVisibility(wp.index for wp in planner.waypoints))
        for card in planner.cards():
            print(format_card(card))
        print("Travel recommendations:")
        for advisory in planner.advisories(args.hour):
            print(f"  - {advisory}")
    finally:
        await deps.http_client.aclose()
    return 0


def main(argv: list[str] | None = None) -> int:
    config.configure_logging()
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except Exception:
        logger.exception("Unexpected failure")
        return 1


if __name__ == "__main__":
    sys.exit(main())
