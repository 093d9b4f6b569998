# ABOUTME: Environment-driven settings for API access, fetch timeouts, and logging.
# ABOUTME: Loads a .env file once at import and exposes typed module-level constants.

import logging
import os
from typing import Final

from dotenv import load_dotenv

load_dotenv()

OPENROUTE_API_KEY: str = os.environ.get("OPENROUTE_API_KEY", "")
OPENWEATHER_API_KEY: str = os.environ.get("OPENWEATHER_API_KEY", "")

OPENROUTE_BASE_URL: str = os.environ.get("OPENROUTE_BASE_URL", "https://api.openrouteservice.org")
OPENWEATHER_BASE_URL: str = os.environ.get("OPENWEATHER_BASE_URL", "https://api.openweathermap.org")

# Seconds; 0 disables the per-waypoint timeout
WEATHER_FETCH_TIMEOUT: float = float(os.environ.get("WEATHER_FETCH_TIMEOUT", "20"))

DEFAULT_CONNECTION: str = os.environ.get("SKYROUTE_CONNECTION", "4g")
LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATEFMT: Final[str] = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Route skyroute and httpx logs through one console handler with a shared format."""
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
