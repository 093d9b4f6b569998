# ABOUTME: Pydantic BaseModels for route geometry, waypoints, and weather samples.
# ABOUTME: Defines the structured types shared by the decoder, sampler, scheduler, and synthesizer.

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Coordinate(BaseModel):
    """A geographic point, latitude first."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    def as_lonlat(self) -> list[float]:
        """Longitude-first pair, the order routing and GeoJSON APIs expect."""
        return [self.longitude, self.latitude]


class RoutePath(BaseModel):
    """Decoded route geometry with its summary."""

    model_config = ConfigDict(frozen=True)

    coordinates: tuple[Coordinate, ...] = ()
    distance_km: float = Field(default=0.0, ge=0)
    duration_minutes: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def check_not_single_point(self) -> "RoutePath":
        if len(self.coordinates) == 1:
            raise ValueError("a non-empty route path needs at least 2 points")
        return self


class Waypoint(BaseModel):
    """A sampled position along the route; index is the position among the samples."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    coordinate: Coordinate


class ResourceBudget(BaseModel):
    """Maximum number of waypoints to probe for weather."""

    model_config = ConfigDict(frozen=True)

    max_waypoints: int = Field(ge=1)


class FetchStatus(str, Enum):
    PENDING = "pending"
    LOADING = "loading"
    RESOLVED = "resolved"
    FAILED = "failed"


class WeatherPayload(BaseModel):
    """Current conditions at one waypoint, as reported by the weather provider."""

    condition: str
    description: str = ""
    temperature: float | None = None
    feels_like: float | None = None
    humidity: float | None = None
    wind_speed: float | None = None
    pressure: float | None = None
    visibility: float | None = None
    place_name: str | None = None


class WeatherSample(BaseModel):
    """Retrieval state for one waypoint.

    Exactly one of payload/error is set once the sample is terminal,
    and neither is set while it is Pending or Loading.
    """

    model_config = ConfigDict(frozen=True)

    waypoint: Waypoint
    status: FetchStatus = FetchStatus.PENDING
    payload: WeatherPayload | None = None
    error: str | None = None

    @model_validator(mode="after")
    def check_payload_matches_status(self) -> "WeatherSample":
        if self.status == FetchStatus.RESOLVED and (self.payload is None or self.error is not None):
            raise ValueError("a resolved sample carries a payload and no error")
        if self.status == FetchStatus.FAILED and (self.error is None or self.payload is not None):
            raise ValueError("a failed sample carries an error and no payload")
        if self.status in (FetchStatus.PENDING, FetchStatus.LOADING) and (
            self.payload is not None or self.error is not None
        ):
            raise ValueError(f"a {self.status.value} sample carries neither payload nor error")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status in (FetchStatus.RESOLVED, FetchStatus.FAILED)


class RouteResponse(BaseModel):
    """Parsed response from the routing provider."""

    encoded_geometry: str
    distance_meters: float = Field(ge=0)
    duration_seconds: float = Field(ge=0)


Advisory = str
