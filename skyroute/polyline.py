# ABOUTME: Encoded polyline codec for route geometry (precision 1e5, signed delta values).
# ABOUTME: Decodes provider geometry into latitude-first Coordinates; encode is the inverse.

import math
from collections.abc import Iterable

from pydantic import ValidationError

from skyroute.errors import DecodeError
from skyroute.models import Coordinate

PRECISION = 5

_FACTOR = 10**PRECISION
_CHUNK_BITS = 5
_CHUNK_MASK = 0x1F
_CONTINUATION = 0x20
_OFFSET = 63


def _read_values(encoded: str) -> list[int]:
    """Split the character stream into signed integers."""
    values = []
    result = 0
    shift = 0
    in_value = False
    for position, char in enumerate(encoded):
        byte = ord(char) - _OFFSET
        if byte < 0 or byte > 0x3F:
            raise DecodeError(f"Invalid character {char!r} at position {position}")
        result |= (byte & _CHUNK_MASK) << shift
        shift += _CHUNK_BITS
        in_value = True
        if not byte & _CONTINUATION:
            values.append(~(result >> 1) if result & 1 else result >> 1)
            result = 0
            shift = 0
            in_value = False
    if in_value:
        raise DecodeError("Unterminated value at end of encoded geometry")
    return values


def decode(encoded: str, geojson: bool = False) -> list[Coordinate]:
    """Decode an encoded polyline into latitude-first coordinates.

    Pairs in the stream are latitude-first unless ``geojson`` is set, in which
    case they are longitude-first and get swapped. Either way the result is
    latitude-first.

    Raises:
        DecodeError: On an invalid character, an unterminated value, a dangling
            half pair, or a point outside valid latitude/longitude ranges.
    """
    values = _read_values(encoded)
    if len(values) % 2:
        raise DecodeError("Unterminated coordinate pair at end of encoded geometry")

    coordinates = []
    first = second = 0
    for i in range(0, len(values), 2):
        first += values[i]
        second += values[i + 1]
        lat, lon = (second, first) if geojson else (first, second)
        try:
            coordinates.append(Coordinate(latitude=lat / _FACTOR, longitude=lon / _FACTOR))
        except ValidationError as e:
            raise DecodeError(f"Decoded point {i // 2} is out of range: ({lat / _FACTOR}, {lon / _FACTOR})") from e
    return coordinates


def _round(value: float) -> int:
    # Half away from zero, matching the provider's encoder
    return int(math.floor(abs(value) + 0.5)) * (1 if value >= 0 else -1)


def _write_value(value: int) -> str:
    value = ~(value << 1) if value < 0 else value << 1
    chars = []
    while value >= _CONTINUATION:
        chars.append(chr((_CONTINUATION | (value & _CHUNK_MASK)) + _OFFSET))
        value >>= _CHUNK_BITS
    chars.append(chr(value + _OFFSET))
    return "".join(chars)


def encode(coordinates: Iterable[Coordinate], geojson: bool = False) -> str:
    """Encode coordinates into a polyline string, the inverse of ``decode``."""
    parts = []
    prev_first = prev_second = 0
    for coord in coordinates:
        first, second = (coord.longitude, coord.latitude) if geojson else (coord.latitude, coord.longitude)
        first_int = _round(first * _FACTOR)
        second_int = _round(second * _FACTOR)
        parts.append(_write_value(first_int - prev_first))
        parts.append(_write_value(second_int - prev_second))
        prev_first, prev_second = first_int, second_int
    return "".join(parts)
