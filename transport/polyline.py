"""
Encoded polyline codec (the Google polyline algorithm).

Each coordinate is stored as a pair of signed deltas from the previous one,
latitude first, quantised to ``10 ** -precision`` degrees and packed into
5-bit groups offset by 63.
"""
from __future__ import annotations

import math
from typing import Iterable, List, Optional, Tuple

from .exceptions import MalformedPathError
from .models import Coordinate

PRECISION = 5


def decode(polyline: Optional[str], precision: int = PRECISION) -> List[Coordinate]:
    """
    Decode a polyline string into an ordered list of coordinates.

    An empty or missing string decodes to an empty list.
    """
    coordinates: List[Coordinate] = []
    if not polyline:
        return coordinates

    factor = 10 ** precision
    index = 0
    lat = 0
    lng = 0

    while index < len(polyline):
        lat_change, index = _decode_value(polyline, index)
        if index >= len(polyline):
            raise MalformedPathError(
                f"Invalid polyline: latitude at offset {index} has no longitude."
            )
        lng_change, index = _decode_value(polyline, index)
        lat += lat_change
        lng += lng_change
        try:
            coordinates.append(Coordinate(lat / factor, lng / factor))
        except ValueError as error:
            raise MalformedPathError(f"Invalid polyline: {error}") from error

    return coordinates


def encode(coordinates: Iterable[Coordinate], precision: int = PRECISION) -> str:
    factor = 10 ** precision
    chunks: List[str] = []
    prev_lat = 0
    prev_lng = 0

    for coordinate in coordinates:
        lat = _quantise(coordinate.latitude, factor)
        lng = _quantise(coordinate.longitude, factor)
        chunks.append(_encode_value(lat - prev_lat))
        chunks.append(_encode_value(lng - prev_lng))
        prev_lat, prev_lng = lat, lng

    return "".join(chunks)


def _decode_value(polyline: str, index: int) -> Tuple[int, int]:
    result = 0
    shift = 0

    while True:
        if index >= len(polyline):
            raise MalformedPathError("Invalid polyline: buffer exhausted.")
        b = ord(polyline[index]) - 63
        if not 0 <= b <= 63:
            raise MalformedPathError(
                f"Invalid polyline: unexpected character {polyline[index]!r} at offset {index}."
            )
        index += 1
        result |= (b & 0x1F) << shift
        shift += 5
        if b < 0x20:
            break

    delta = ~(result >> 1) if (result & 1) else (result >> 1)
    return delta, index


def _encode_value(value: int) -> str:
    value = ~(value << 1) if value < 0 else (value << 1)
    chunks = []
    while value >= 0x20:
        chunks.append(chr((0x20 | (value & 0x1F)) + 63))
        value >>= 5
    chunks.append(chr(value + 63))
    return "".join(chunks)


def _quantise(value: float, factor: int) -> int:
    # Half away from zero, as the reference encoders do.
    return int(math.copysign(math.floor(abs(value) * factor + 0.5), value))
