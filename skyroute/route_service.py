# ABOUTME: Service layer for geocoding, routing, and weather API calls and response parsing.
# ABOUTME: Wraps OpenRouteService and OpenWeatherMap, mapping failures onto the domain errors.

import logging
from collections.abc import Awaitable

import httpx

from skyroute import polyline
from skyroute.deps import RouteDeps
from skyroute.errors import DecodeError, LocationNotFound, NoRouteFound, ProviderError
from skyroute.models import Coordinate, RoutePath, RouteResponse, WeatherPayload

logger = logging.getLogger(__name__)

GEOCODE_PATH = "/geocode/search"
DIRECTIONS_PATH = "/v2/directions/driving-car"
WEATHER_PATH = "/data/2.5/weather"


async def _json(call: Awaitable[httpx.Response], api: str) -> dict:
    """Await a request and return its JSON body, raising ProviderError on an error status."""
    try:
        resp = await call
        resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.error(f"{api} API returned {e.response.status_code}")
        raise ProviderError(e.response.status_code, api) from e
    return resp.json()


async def geocode(deps: RouteDeps, location: str) -> Coordinate:
    """Resolve free text to the best-matching coordinate.

    Raises:
        LocationNotFound: If the geocoder has no match.
        ProviderError: If the geocoding API answers with an error status.
    """
    data = await _json(
        deps.http_client.get(
            f"{deps.openroute_base_url}{GEOCODE_PATH}",
            params={"api_key": deps.openroute_api_key, "text": location},
        ),
        "Geocoding",
    )
    features = data.get("features")
    if not features:
        raise LocationNotFound(location)

    lon, lat = features[0]["geometry"]["coordinates"][:2]
    logger.info(f"Geocoded '{location}' to ({lat}, {lon})")
    return Coordinate(latitude=lat, longitude=lon)


async def get_route(deps: RouteDeps, start: Coordinate, end: Coordinate) -> RouteResponse:
    """Request a driving route between two coordinates.

    Raises:
        NoRouteFound: If the router returns no routes.
        ProviderError: If the routing API answers with an error status.
    """
    data = await _json(
        deps.http_client.post(
            f"{deps.openroute_base_url}{DIRECTIONS_PATH}",
            params={"api_key": deps.openroute_api_key},
            json={"coordinates": [start.as_lonlat(), end.as_lonlat()]},
        ),
        "Route",
    )
    return parse_route_response(data)


def parse_route_response(data: dict) -> RouteResponse:
    """Pick the first route out of an OpenRouteService directions response."""
    routes = data.get("routes")
    if not routes:
        raise NoRouteFound()

    route = routes[0]
    geometry = route.get("geometry")
    if not isinstance(geometry, str):
        raise NoRouteFound("Route response has no encoded geometry")
    summary = route.get("summary", {})
    return RouteResponse(
        encoded_geometry=geometry,
        distance_meters=summary.get("distance", 0.0),
        duration_seconds=summary.get("duration", 0.0),
    )


def build_route_path(response: RouteResponse) -> RoutePath:
    """Decode the route geometry and convert the summary to kilometres and minutes.

    Raises:
        DecodeError: If the geometry is malformed or decodes to a single point.
    """
    coordinates = polyline.decode(response.encoded_geometry)
    if len(coordinates) == 1:
        raise DecodeError("Route geometry decodes to a single point")
    return RoutePath(
        coordinates=tuple(coordinates),
        distance_km=round(response.distance_meters / 1000, 1),
        duration_minutes=round(response.duration_seconds / 60),
    )


async def fetch_weather(deps: RouteDeps, coordinate: Coordinate) -> WeatherPayload:
    """Fetch current conditions at a coordinate in metric units.

    Raises:
        ProviderError: If the weather API answers with an error status.
    """
    data = await _json(
        deps.http_client.get(
            f"{deps.openweather_base_url}{WEATHER_PATH}",
            params={
                "lat": coordinate.latitude,
                "lon": coordinate.longitude,
                "appid": deps.openweather_api_key,
                "units": "metric",
            },
        ),
        "Weather",
    )
    return parse_weather_payload(data)


def parse_weather_payload(data: dict) -> WeatherPayload:
    """Flatten an OpenWeatherMap current-weather response into a WeatherPayload."""
    weather = (data.get("weather") or [{}])[0]
    main = data.get("main", {})
    wind = data.get("wind", {})
    return WeatherPayload(
        condition=weather.get("main", "Clear"),
        description=weather.get("description", ""),
        temperature=main.get("temp"),
        feels_like=main.get("feels_like"),
        humidity=main.get("humidity"),
        wind_speed=wind.get("speed"),
        pressure=main.get("pressure"),
        visibility=data.get("visibility"),
        place_name=data.get("name") or None,
    )
