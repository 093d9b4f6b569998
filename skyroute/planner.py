# ABOUTME: Route session orchestration: submission pipeline, waypoint cards, and advisories.
# ABOUTME: Owns the session state and wires the decoder, sampler, fetch scheduler, and synthesizer.

import logging
from datetime import datetime
from functools import partial

import httpx
from pydantic import BaseModel, ConfigDict

from skyroute import config
from skyroute.advisories import synthesize
from skyroute.deps import RouteDeps
from skyroute.errors import SkyRouteError
from skyroute.models import (
    Advisory,
    Coordinate,
    FetchStatus,
    ResourceBudget,
    RoutePath,
    Waypoint,
    WeatherPayload,
)
from skyroute.route_service import build_route_path, fetch_weather, geocode, get_route
from skyroute.sampler import budget_for_connection, sample
from skyroute.scheduler import FetchScheduler, FetchState
from skyroute.signals import NetworkQualitySignal, StaticNetworkQuality, VisibilitySignal

logger = logging.getLogger(__name__)


class Session(BaseModel):
    """Route and waypoints for one successful submission; replaced wholesale, never mutated."""

    model_config = ConfigDict(frozen=True)

    route: RoutePath | None = None
    waypoints: tuple[Waypoint, ...] = ()
    budget: ResourceBudget | None = None


class WaypointCard(BaseModel):
    """Render-ready view of one waypoint and its weather."""

    index: int
    coordinate: Coordinate
    status: FetchStatus
    payload: WeatherPayload | None = None
    error: str | None = None

    @property
    def title(self) -> str:
        return f"Waypoint {self.index + 1}"


class TripPlanner:
    """Plans a route and overlays it with visibility-gated weather.

    Submission-level failures leave the planner empty and re-raise; waypoint
    failures stay inside their own card.
    """

    def __init__(
        self,
        deps: RouteDeps,
        network: NetworkQualitySignal | None = None,
        fetch_timeout: float | None = config.WEATHER_FETCH_TIMEOUT,
        on_change=None,
    ):
        self.deps = deps
        self.network = network or StaticNetworkQuality(config.DEFAULT_CONNECTION)
        self.session = Session()
        self.scheduler = FetchScheduler(partial(fetch_weather, deps), timeout=fetch_timeout, on_change=on_change)

    @property
    def route(self) -> RoutePath | None:
        return self.session.route

    @property
    def waypoints(self) -> tuple[Waypoint, ...]:
        return self.session.waypoints

    @property
    def has_weather_overlay(self) -> bool:
        return bool(self.session.waypoints)

    def _reset(self) -> None:
        self.session = Session()
        self.scheduler.reset()

    async def submit(self, start: str, end: str, current_location: Coordinate | None = None) -> RoutePath:
        """Geocode, route, decode, and sample; then start a fresh set of Pending waypoints.

        ``current_location`` replaces geocoding of ``start`` when given. If a newer
        submission starts before this one finishes, this result is dropped and the
        newer session is left in place.
        """
        self._reset()
        generation = self.scheduler.state.generation
        budget = budget_for_connection(self.network.effective_type())
        logger.info(f"Submitting route '{start}' -> '{end}' with budget {budget.max_waypoints}")

        try:
            start_coord = current_location or await geocode(self.deps, start)
            end_coord = await geocode(self.deps, end)
            response = await get_route(self.deps, start_coord, end_coord)
            route = build_route_path(response)
        except (SkyRouteError, httpx.HTTPError) as e:
            logger.error(f"Route submission failed: {e}")
            raise

        if generation != self.scheduler.state.generation:
            logger.info(f"Dropping route '{start}' -> '{end}': superseded by a newer submission")
            return route

        waypoints = sample(route.coordinates, budget)
        self.session = Session(route=route, waypoints=tuple(waypoints), budget=budget)
        self.scheduler.load(waypoints)
        logger.info(
            f"Route ready: {route.distance_km}km, {route.duration_minutes}min, "
            f"{len(route.coordinates)} points, {len(waypoints)} waypoints"
        )
        return route

    def on_visible(self, index: int) -> None:
        self.scheduler.on_visible(index)

    async def watch(self, signal: VisibilitySignal) -> None:
        """Feed a visibility signal into the scheduler until it ends, then await open fetches."""
        await self.scheduler.consume(signal)
        await self.scheduler.wait_idle()

    @property
    def fetch_state(self) -> FetchState:
        return self.scheduler.state

    def cards(self) -> list[WaypointCard]:
        return [
            WaypointCard(
                index=s.waypoint.index,
                coordinate=s.waypoint.coordinate,
                status=s.status,
                payload=s.payload,
                error=s.error,
            )
            for s in self.scheduler.samples()
        ]

    def advisories(self, local_hour: int | None = None) -> list[Advisory]:
        """Synthesize advisories from whatever weather has arrived so far."""
        if local_hour is None:
            local_hour = datetime.now().hour
        return synthesize(self.scheduler.samples(), self.session.route or RoutePath(), local_hour)
