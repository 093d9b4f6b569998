# ABOUTME: Shared test fixtures for the route weather test suite.
# ABOUTME: Provides coordinate, payload, and sample builders plus a mock HTTP client factory.

import httpx
import pytest

from skyroute.models import Coordinate, FetchStatus, RoutePath, Waypoint, WeatherPayload, WeatherSample


def make_payload(temperature: float | None = 20.0, condition: str = "Clear", wind_speed: float | None = 3.0) -> WeatherPayload:
    return WeatherPayload(condition=condition, temperature=temperature, wind_speed=wind_speed, place_name="Testville")


def resolved(index: int, **payload_kwargs) -> WeatherSample:
    waypoint = Waypoint(index=index, coordinate=Coordinate(latitude=index, longitude=index))
    return WeatherSample(waypoint=waypoint, status=FetchStatus.RESOLVED, payload=make_payload(**payload_kwargs))


def pending(index: int) -> WeatherSample:
    return WeatherSample(waypoint=Waypoint(index=index, coordinate=Coordinate(latitude=index, longitude=index)))


def failed(index: int, message: str = "Weather API error: 500") -> WeatherSample:
    waypoint = Waypoint(index=index, coordinate=Coordinate(latitude=index, longitude=index))
    return WeatherSample(waypoint=waypoint, status=FetchStatus.FAILED, error=message)


def line(n: int) -> list[Coordinate]:
    """n distinct points along a line, so source indices are recoverable from latitude."""
    return [Coordinate(latitude=i / 100, longitude=10.0) for i in range(n)]


def json_response(json_data: dict, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code=status_code, json=json_data, request=httpx.Request("GET", "https://test"))


@pytest.fixture
def short_route() -> RoutePath:
    return RoutePath(coordinates=tuple(line(2)), distance_km=10.0, duration_minutes=30)
