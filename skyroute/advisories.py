# ABOUTME: Travel advisory synthesis from partially available weather samples.
# ABOUTME: Applies fixed-priority rules over resolved samples, route length, and hour of day.

from collections.abc import Sequence

from skyroute.models import Advisory, FetchStatus, RoutePath, WeatherPayload, WeatherSample

MAX_ADVISORIES = 4

HOT_ABOVE_C = 30
COLD_BELOW_C = 5
HIGH_WIND_ABOVE = 10  # m/s, the weather provider's metric unit
LONG_JOURNEY_MINUTES = 120
MORNING_HOURS = range(6, 11)
MIDDAY_HOURS = range(11, 16)

RAIN_CONDITIONS = frozenset({"rain", "drizzle"})
SNOW_CONDITIONS = frozenset({"snow"})

HEAT = "High temperatures expected - carry extra water and sun protection"
COLD = "Cold temperatures ahead - dress warmly and check for icy conditions"
COMFORTABLE = "Comfortable temperatures along route - perfect for travel"
RAIN = "Rain expected along route - pack waterproof gear and allow extra time"
SNOW = "Snow conditions possible - check tire chains and drive carefully"
HIGH_WIND = "Strong winds detected - secure loose items and be cautious of crosswinds"
EARLY_MORNING = "Early morning travel - excellent choice for avoiding traffic and heat"
MIDDAY_UV = "Midday travel - UV levels high, use sun protection"
LONG_JOURNEY = "Long journey ahead - plan rest stops every 2 hours"
FALLBACK = (
    "Good weather conditions for travel",
    "Check vehicle before departure",
    "Keep emergency contacts handy",
)


def _resolved_payloads(samples: Sequence[WeatherSample]) -> list[WeatherPayload]:
    return [s.payload for s in samples if s.status == FetchStatus.RESOLVED and s.payload is not None]


def _temperature_advisory(payloads: list[WeatherPayload]) -> Advisory | None:
    temps = [p.temperature for p in payloads if p.temperature is not None]
    if not temps:
        return None
    average = sum(temps) / len(temps)
    if average > HOT_ABOVE_C:
        return HEAT
    if average < COLD_BELOW_C:
        return COLD
    return COMFORTABLE


def _has_condition(payloads: list[WeatherPayload], conditions: frozenset[str]) -> bool:
    return any(p.condition.lower() in conditions for p in payloads)


def synthesize(samples: Sequence[WeatherSample], route: RoutePath, local_hour: int) -> list[Advisory]:
    """Derive up to four prioritized travel advisories.

    Only Resolved samples contribute, so this can run at any point while fetches
    are still arriving. Rules in priority order: temperature bucket, rain, snow,
    high wind, time of day, long journey. If none fire, a generic fallback set
    is returned instead.
    """
    if not 0 <= local_hour <= 23:
        raise ValueError(f"local_hour must be within 0..23, got {local_hour}")

    payloads = _resolved_payloads(samples)
    advisories: list[Advisory] = []

    temperature = _temperature_advisory(payloads)
    if temperature is not None:
        advisories.append(temperature)
    if _has_condition(payloads, RAIN_CONDITIONS):
        advisories.append(RAIN)
    if _has_condition(payloads, SNOW_CONDITIONS):
        advisories.append(SNOW)
    if any(p.wind_speed is not None and p.wind_speed > HIGH_WIND_ABOVE for p in payloads):
        advisories.append(HIGH_WIND)

    if local_hour in MORNING_HOURS:
        advisories.append(EARLY_MORNING)
    elif local_hour in MIDDAY_HOURS:
        advisories.append(MIDDAY_UV)

    if route.duration_minutes > LONG_JOURNEY_MINUTES:
        advisories.append(LONG_JOURNEY)

    if not advisories:
        advisories.extend(FALLBACK)

    return advisories[:MAX_ADVISORIES]
