# ABOUTME: Integration tests for the route planning session.
# ABOUTME: Runs submission, visibility-gated weather, and advisories against a mocked HTTP client.

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from conftest import json_response, line
from skyroute import advisories as adv
from skyroute.deps import RouteDeps
from skyroute.errors import DecodeError, LocationNotFound, NoRouteFound
from skyroute.models import Coordinate, FetchStatus
from skyroute.planner import TripPlanner
from skyroute.polyline import encode
from skyroute.signals import ReplayVisibility, StaticNetworkQuality

PLACES = {"Berlin": [13.405, 52.52], "Hamburg": [9.99, 53.55]}
ROUTE_POINTS = line(11)


def _mock_deps(geometry: str | None = None, routes: list | None = None, failing_lat: float | None = None) -> RouteDeps:
    """Mock client: geocodes PLACES, routes over ROUTE_POINTS, and reports 36°C everywhere.

    Weather for a waypoint at ``failing_lat`` answers 500.
    """
    if routes is None:
        routes = [
            {
                "geometry": encode(ROUTE_POINTS) if geometry is None else geometry,
                "summary": {"distance": 289000.0, "duration": 9000.0},
            }
        ]

    async def get(url, params=None, **kwargs):
        if url.endswith("/geocode/search"):
            lonlat = PLACES.get(params["text"])
            return json_response({"features": [{"geometry": {"coordinates": lonlat}}] if lonlat else []})
        if failing_lat is not None and params["lat"] == pytest.approx(failing_lat):
            return json_response({"cod": 500}, status_code=500)
        return json_response(
            {"weather": [{"main": "Clear"}], "main": {"temp": 36.0}, "wind": {"speed": 2.0}, "name": "Somewhere"}
        )

    async def post(url, params=None, json=None, **kwargs):
        return json_response({"routes": routes})

    mock = AsyncMock(spec=httpx.AsyncClient)
    mock.get.side_effect = get
    mock.post.side_effect = post
    return RouteDeps(http_client=mock)


def _weather_calls(deps: RouteDeps) -> int:
    return sum(1 for call in deps.http_client.get.call_args_list if call.args[0].endswith("/data/2.5/weather"))


class TestSubmit:
    @pytest.mark.asyncio
    async def test_submission_samples_without_fetching(self):
        """A submission decodes and samples the route but fetches no weather yet.

        Implementation: Submits Berlin -> Hamburg over a fast connection.
        Passing implies: Weather is only fetched once waypoints become visible.
        """
        deps = _mock_deps()
        planner = TripPlanner(deps, network=StaticNetworkQuality("4g"), fetch_timeout=None)
        route = await planner.submit("Berlin", "Hamburg")

        assert len(route.coordinates) == 11
        assert route.distance_km == 289.0
        assert route.duration_minutes == 150
        assert [wp.coordinate for wp in planner.waypoints] == [ROUTE_POINTS[i] for i in (0, 2, 4, 6, 8, 10)]
        assert all(card.status == FetchStatus.PENDING for card in planner.cards())
        assert _weather_calls(deps) == 0

    @pytest.mark.asyncio
    async def test_slow_connection_samples_three(self):
        """A 2g connection limits the route to three waypoints.

        Implementation: Submits with StaticNetworkQuality("2g").
        Passing implies: The budget is read from the network signal at submission.
        """
        planner = TripPlanner(_mock_deps(), network=StaticNetworkQuality("2g"), fetch_timeout=None)
        await planner.submit("Berlin", "Hamburg")
        assert len(planner.waypoints) == 3
        assert planner.session.budget.max_waypoints == 3

    @pytest.mark.asyncio
    async def test_current_location_skips_start_geocode(self):
        """A known current location replaces geocoding of the start text.

        Implementation: Submits an unknown start text with current_location set.
        Passing implies: Only the destination is geocoded.
        """
        deps = _mock_deps()
        planner = TripPlanner(deps, fetch_timeout=None)
        here = Coordinate(latitude=52.0, longitude=13.0)
        await planner.submit("Current Location", "Hamburg", current_location=here)

        body = deps.http_client.post.call_args.kwargs["json"]
        assert body["coordinates"][0] == [13.0, 52.0]

    @pytest.mark.asyncio
    async def test_empty_geometry_has_no_overlay(self):
        """An empty route geometry yields a route with no weather overlay.

        Implementation: Routes with an empty encoded geometry.
        Passing implies: Empty sampling results render without error.
        """
        planner = TripPlanner(_mock_deps(geometry=""), fetch_timeout=None)
        await planner.submit("Berlin", "Hamburg")
        assert not planner.has_weather_overlay
        assert planner.cards() == []
        assert planner.advisories(13) == [adv.MIDDAY_UV, adv.LONG_JOURNEY]


class TestSubmissionErrors:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "deps_kwargs,start,error",
        [
            ({}, "Atlantis", LocationNotFound),
            ({"routes": []}, "Berlin", NoRouteFound),
            ({"geometry": "_p~iF~ps|"}, "Berlin", DecodeError),
        ],
    )
    async def test_failure_resets_session(self, deps_kwargs, start, error):
        """Submission errors propagate and leave the planner empty.

        Implementation: Runs a good submission, swaps in failing HTTP responses, and submits again.
        Passing implies: No partial route or stale waypoints survive a failed submission.
        """
        planner = TripPlanner(_mock_deps(), fetch_timeout=None)
        await planner.submit("Berlin", "Hamburg")
        assert planner.has_weather_overlay

        planner.deps = _mock_deps(**deps_kwargs)
        with pytest.raises(error):
            await planner.submit(start, "Hamburg")

        assert planner.route is None
        assert planner.waypoints == ()
        assert planner.cards() == []


class TestWeatherOverlay:
    @pytest.mark.asyncio
    async def test_visible_waypoints_resolve(self):
        """Only waypoints signalled visible are fetched and resolved.

        Implementation: Replays visibility for waypoints 0 and 5, twice each.
        Passing implies: Fetches are gated and deduplicated per waypoint.
        """
        deps = _mock_deps()
        planner = TripPlanner(deps, fetch_timeout=None)
        await planner.submit("Berlin", "Hamburg")
        await planner.watch(ReplayVisibility([0, 5, 0, 5]))

        statuses = [card.status for card in planner.cards()]
        assert statuses == [FetchStatus.RESOLVED] + [FetchStatus.PENDING] * 4 + [FetchStatus.RESOLVED]
        assert _weather_calls(deps) == 2
        assert planner.cards()[0].payload.place_name == "Somewhere"
        assert planner.cards()[0].title == "Waypoint 1"

    @pytest.mark.asyncio
    async def test_failed_card_keeps_message(self):
        """A weather error fails only its own card and shows the raw message.

        Implementation: Makes the weather API fail for the third waypoint.
        Passing implies: Waypoint errors never abort the route display.
        """
        deps = _mock_deps(failing_lat=ROUTE_POINTS[4].latitude)
        planner = TripPlanner(deps, fetch_timeout=None)
        await planner.submit("Berlin", "Hamburg")
        await planner.watch(ReplayVisibility(range(6)))

        cards = planner.cards()
        assert cards[2].status == FetchStatus.FAILED
        assert cards[2].error == "Weather API error: 500"
        assert all(c.status == FetchStatus.RESOLVED for i, c in enumerate(cards) if i != 2)
        assert planner.route is not None

    @pytest.mark.asyncio
    async def test_advisories_follow_partial_data(self):
        """Advisories reflect whatever samples have resolved so far.

        Implementation: Synthesizes before and after revealing one waypoint at hour 20.
        Passing implies: The synthesizer is re-run on current state, not memoized.
        """
        planner = TripPlanner(_mock_deps(), fetch_timeout=None)
        await planner.submit("Berlin", "Hamburg")
        assert planner.advisories(20) == [adv.LONG_JOURNEY]

        await planner.watch(ReplayVisibility([3]))
        assert planner.advisories(20) == [adv.HEAT, adv.LONG_JOURNEY]

    @pytest.mark.asyncio
    async def test_resubmission_starts_fresh(self):
        """A new submission replaces every sample with a fresh Pending one.

        Implementation: Resolves all waypoints, then submits the same route again.
        Passing implies: Samples are never reused across submissions.
        """
        planner = TripPlanner(_mock_deps(), fetch_timeout=None)
        await planner.submit("Berlin", "Hamburg")
        await planner.watch(ReplayVisibility(range(6)))
        first_generation = planner.fetch_state.generation

        await planner.submit("Berlin", "Hamburg")
        assert planner.fetch_state.generation > first_generation
        assert all(card.status == FetchStatus.PENDING for card in planner.cards())


class TestOverlappingSubmissions:
    @pytest.mark.asyncio
    async def test_older_submission_does_not_replace_newer(self):
        """A slow submission finishing after a newer one leaves the newer route in place.

        Implementation: Holds the first submission's start geocode on an event, runs a second
        submission to completion, then releases the first. Routes start at each geocoded start.
        Passing implies: The session always reflects the latest submission, not the slowest.
        """
        release = asyncio.Event()
        starts = {"Slow": [10.0, 50.0], "Fast": [20.0, 50.0], "Hamburg": [9.99, 53.55]}

        async def get(url, params=None, **kwargs):
            if params["text"] == "Slow":
                await release.wait()
            return json_response({"features": [{"geometry": {"coordinates": starts[params["text"]]}}]})

        async def post(url, params=None, json=None, **kwargs):
            points = [Coordinate(latitude=lat, longitude=lon) for lon, lat in json["coordinates"]]
            return json_response({"routes": [{"geometry": encode(points), "summary": {"distance": 1000.0, "duration": 600.0}}]})

        mock = AsyncMock(spec=httpx.AsyncClient)
        mock.get.side_effect = get
        mock.post.side_effect = post
        planner = TripPlanner(RouteDeps(http_client=mock), fetch_timeout=None)

        slow = asyncio.create_task(planner.submit("Slow", "Hamburg"))
        await asyncio.sleep(0)
        await planner.submit("Fast", "Hamburg")
        generation = planner.fetch_state.generation

        release.set()
        slow_route = await slow

        assert slow_route.coordinates[0].longitude == 10.0
        assert planner.route.coordinates[0].longitude == 20.0
        assert planner.waypoints[0].coordinate.longitude == 20.0
        assert planner.fetch_state.generation == generation
        assert planner.cards()[0].coordinate.longitude == 20.0
