"""
Geometry helpers and route hydration for the live tracking map.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from shapely.geometry import MultiPoint

from . import polyline
from .exceptions import MalformedPathError
from .models import Contact, Coordinate, Route, Stop

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0088


def haversine_km(start: Coordinate, end: Coordinate) -> float:
    """
    Compute the great-circle distance between two coordinates in kilometres.
    """
    lat1, lng1 = map(math.radians, start.as_tuple())
    lat2, lng2 = map(math.radians, end.as_tuple())
    d_lat = lat2 - lat1
    d_lng = lng2 - lng1
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def bearing(start: Coordinate, end: Coordinate) -> float:
    """
    Initial great-circle bearing from ``start`` to ``end`` in degrees, [0, 360).

    Identical points yield 0; callers gate on ``has_moved`` so an unchanged
    report keeps the previous heading instead.
    """
    phi1 = math.radians(start.latitude)
    phi2 = math.radians(end.latitude)
    d_lambda = math.radians(end.longitude - start.longitude)

    y = math.sin(d_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(
        d_lambda
    )
    return (math.degrees(math.atan2(y, x)) + 360) % 360


def has_moved(previous: Optional[Coordinate], current: Coordinate) -> bool:
    # Exact comparison: the feed re-sends the last fix verbatim while stationary.
    if previous is None:
        return False
    return current.as_tuple() != previous.as_tuple()


def interpolate(start: Coordinate, end: Coordinate, fraction: float) -> Coordinate:
    fraction = min(max(fraction, 0.0), 1.0)
    return Coordinate(
        start.latitude + (end.latitude - start.latitude) * fraction,
        start.longitude + (end.longitude - start.longitude) * fraction,
    )


def animation_frames(
    start: Coordinate,
    end: Coordinate,
    duration_ms: float,
    frame_interval_ms: float,
) -> Iterator[Tuple[float, Coordinate]]:
    """
    Yield ``(elapsed_ms, coordinate)`` pairs for a linear glide.

    The first frame is ``start`` at 0 ms and the last is exactly ``end`` at
    ``duration_ms``.
    """
    if duration_ms <= 0 or frame_interval_ms <= 0:
        steps = 1
    else:
        steps = max(int(math.ceil(duration_ms / frame_interval_ms)), 1)
    for step in range(steps + 1):
        fraction = step / steps
        point = end if step == steps else interpolate(start, end, fraction)
        yield duration_ms * fraction, point


@dataclass(frozen=True)
class ViewportRegion:
    south: float
    west: float
    north: float
    east: float
    padding_px: int = 0

    @property
    def center(self) -> Coordinate:
        return Coordinate((self.south + self.north) / 2, (self.west + self.east) / 2)

    @property
    def latitude_delta(self) -> float:
        return self.north - self.south

    @property
    def longitude_delta(self) -> float:
        return self.east - self.west

    def contains(self, coordinate: Coordinate) -> bool:
        return (
            self.south <= coordinate.latitude <= self.north
            and self.west <= coordinate.longitude <= self.east
        )

    def as_dict(self) -> Dict[str, Any]:
        center = self.center
        return {
            "south": self.south,
            "west": self.west,
            "north": self.north,
            "east": self.east,
            "center": center.as_dict(),
            "latitude_delta": self.latitude_delta,
            "longitude_delta": self.longitude_delta,
            "padding_px": self.padding_px,
        }


class ViewportFitter:
    """
    Frames a set of coordinates. When a surface is attached the region is
    pushed to it; otherwise the region is only computed.
    """

    def __init__(self, surface=None):
        self.surface = surface

    def fit(self, coordinates: Sequence[Coordinate], padding_px: int) -> Optional[ViewportRegion]:
        if not coordinates:
            return None

        west, south, east, north = MultiPoint(
            [(c.longitude, c.latitude) for c in coordinates]
        ).bounds
        region = ViewportRegion(south, west, north, east, padding_px)
        if self.surface is not None:
            self.surface.fit_to_region(region)
        return region


def parse_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_coordinate(lat: Any, lng: Any) -> Optional[Coordinate]:
    latitude = parse_float(lat)
    longitude = parse_float(lng)
    if latitude is None or longitude is None:
        return None
    try:
        return Coordinate(latitude, longitude)
    except ValueError as error:
        logger.warning("Ignoring out-of-range coordinate: %s", error)
        return None


def _parse_contact(payload: Mapping[str, Any], role: str) -> Contact:
    nested = payload.get(role)
    if isinstance(nested, Mapping):
        return Contact(nested.get("name"), nested.get("phone"))
    return Contact(payload.get(f"{role}_name"), payload.get(f"{role}_phone"))


def parse_stops(raw_stops: Any) -> Tuple[Stop, ...]:
    if not isinstance(raw_stops, list):
        return ()

    stops: List[Stop] = []
    for position, raw in enumerate(raw_stops, start=1):
        if not isinstance(raw, Mapping):
            continue
        try:
            sequence = int(raw.get("sno"))
        except (TypeError, ValueError):
            sequence = position
        if sequence < 1:
            sequence = position
        stops.append(
            Stop(
                sequence=sequence,
                label=str(raw.get("point") or ""),
                coordinate=parse_coordinate(raw.get("stop_lat"), raw.get("stop_lng")),
            )
        )
    # Stable: repeated sequence numbers keep the order they arrived in.
    stops.sort(key=lambda stop: stop.sequence)
    return tuple(stops)


def _require_mapping(payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise ValueError(f"Expected a route object, got {type(payload).__name__}")
    return payload


class RouteGeometryStore:
    """
    Holds the static shape of one route for the lifetime of a view: the
    decoded path, the ordered stops and the crew metadata. The path is decoded
    once, at hydration; incremental updates only merge metadata and position.
    """

    def __init__(self):
        self.route: Optional[Route] = None
        self.path: List[Coordinate] = []
        self.path_error: Optional[MalformedPathError] = None

    @property
    def hydrated(self) -> bool:
        return self.route is not None

    @property
    def has_path(self) -> bool:
        return bool(self.path)

    def hydrate(self, route_id: str, payload: Any) -> Route:
        data = _require_mapping(payload)
        encoded = data.get("route_path_polyline") or None

        self.path = []
        self.path_error = None
        if encoded:
            try:
                self.path = polyline.decode(encoded)
            except MalformedPathError as error:
                logger.warning("Route %s has an undecodable path, showing stops only: %s", route_id, error)
                self.path_error = error

        self.route = Route(
            id=str(data.get("route_id", route_id)),
            name=str(data.get("route_name") or ""),
            driver=_parse_contact(data, "driver"),
            conductor=_parse_contact(data, "conductor"),
            path=encoded,
            stops=parse_stops(data.get("stops")),
            last_known_position=parse_coordinate(data.get("current_lat"), data.get("current_lng")),
        )
        logger.info(
            "Hydrated route %s with %d path points and %d stops.",
            route_id,
            len(self.path),
            len(self.route.stops),
        )
        return self.route

    def merge(self, payload: Any) -> Tuple[Route, Optional[Coordinate]]:
        """
        Fold an incremental poll response into the route.

        Returns the updated route and the reported position, which is None
        when the response carried no usable fix (the last known one is kept).
        """
        if self.route is None:
            raise RuntimeError("merge() called before hydrate()")

        data = _require_mapping(payload)
        position = parse_coordinate(data.get("current_lat"), data.get("current_lng"))

        changes: Dict[str, Any] = {}
        if data.get("route_name"):
            changes["name"] = str(data["route_name"])
        if any(key in data for key in ("driver", "driver_name", "driver_phone")):
            changes["driver"] = _parse_contact(data, "driver")
        if any(key in data for key in ("conductor", "conductor_name", "conductor_phone")):
            changes["conductor"] = _parse_contact(data, "conductor")
        if position is not None:
            changes["last_known_position"] = position

        self.route = replace(self.route, **changes)
        return self.route, position

    def snapshot(self, viewport: Optional[ViewportRegion] = None) -> Dict[str, Any]:
        route = self.route
        if route is None:
            raise RuntimeError("snapshot() called before hydrate()")
        position = route.last_known_position
        return {
            "route": {
                "id": route.id,
                "name": route.name,
                "driver": route.driver.as_dict(),
                "conductor": route.conductor.as_dict(),
            },
            "map_available": self.has_path,
            "path": [point.as_dict() for point in self.path],
            "stops": [stop.as_dict() for stop in route.stops],
            "viewport": viewport.as_dict() if viewport else None,
            "vehicle": {"location": position.as_dict()} if position else None,
        }
