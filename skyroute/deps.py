# ABOUTME: Dependency container for route planning using Pydantic BaseModel.
# ABOUTME: Holds the httpx.AsyncClient and API keys used by the geocoding, routing, and weather calls.

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic_ai.retries import AsyncTenacityTransport, RetryConfig, wait_retry_after
from tenacity import retry_if_exception_type, stop_after_attempt

from skyroute import config


class RouteDeps(BaseModel):
    """Dependencies shared by the external collaborator calls."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    http_client: httpx.AsyncClient
    openroute_api_key: str = ""
    openweather_api_key: str = ""
    openroute_base_url: str = config.OPENROUTE_BASE_URL
    openweather_base_url: str = config.OPENWEATHER_BASE_URL


def _is_transient(response: httpx.Response) -> None:
    """Raise only for statuses worth retrying; other errors are left for the caller to map."""
    if response.status_code == 429 or response.status_code >= 500:
        response.raise_for_status()


def create_http_client() -> httpx.AsyncClient:
    """Create an httpx client with tenacity retry on transient HTTP errors.

    Retries connection errors, timeouts, and 429/5xx responses with exponential backoff.
    """
    transport = AsyncTenacityTransport(
        RetryConfig(
            retry=retry_if_exception_type((httpx.ConnectError, httpx.ReadTimeout, httpx.HTTPStatusError)),
            wait=wait_retry_after(max_wait=30),
            stop=stop_after_attempt(3),
            reraise=True,
        ),
        validate_response=_is_transient,
    )
    return httpx.AsyncClient(transport=transport, timeout=30.0)


def create_deps() -> RouteDeps:
    """Build dependencies from the environment configuration."""
    return RouteDeps(
        http_client=create_http_client(),
        openroute_api_key=config.OPENROUTE_API_KEY,
        openweather_api_key=config.OPENWEATHER_API_KEY,
    )
