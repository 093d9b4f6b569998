# ABOUTME: Exception taxonomy for route planning and weather overlay.
# ABOUTME: Submission-level errors abort the pipeline; ProviderError stays scoped to one waypoint.


class SkyRouteError(Exception):
    """Base class for all route planning errors."""


class DecodeError(SkyRouteError):
    """Encoded route geometry is malformed (invalid character or unterminated value)."""


class LocationNotFound(SkyRouteError):
    """The geocoder returned no match for a free-text location."""

    def __init__(self, location: str):
        super().__init__(f"Location not found: {location}")
        self.location = location


class NoRouteFound(SkyRouteError):
    """The router returned no route between the two coordinates."""

    def __init__(self, message: str = "No route found between these locations"):
        super().__init__(message)


class ProviderError(SkyRouteError):
    """An upstream API answered with a non-success status."""

    def __init__(self, status_code: int, api: str = "Weather"):
        super().__init__(f"{api} API error: {status_code}")
        self.status_code = status_code
