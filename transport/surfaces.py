"""
The map surface the tracker renders onto.

The tracker never draws anything itself; it drives whatever implements
``MapSurface``. ``LoggingMapSurface`` is a headless implementation used by the
``track_route`` command.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol, Sequence

from .models import Coordinate, Stop
from .services import ViewportRegion, animation_frames

logger = logging.getLogger(__name__)


class MapSurface(Protocol):
    def draw_path(self, coordinates: Sequence[Coordinate]) -> None:
        ...

    def place_stop_markers(self, stops: Sequence[Stop]) -> None:
        ...

    def place_vehicle_marker(self, coordinate: Coordinate, heading: float) -> None:
        ...

    async def animate_marker(
        self,
        start: Coordinate,
        end: Coordinate,
        duration_ms: float,
        heading: float,
    ) -> None:
        ...

    def fit_to_region(self, region: ViewportRegion) -> None:
        ...


class LoggingMapSurface:
    def __init__(self, frame_interval_ms: float = 50, sleep=asyncio.sleep):
        self.frame_interval_ms = frame_interval_ms
        self._sleep = sleep
        self.marker: Optional[Coordinate] = None
        self.heading: float = 0.0
        self.region: Optional[ViewportRegion] = None

    def draw_path(self, coordinates: Sequence[Coordinate]) -> None:
        logger.info("Drawing route path with %d points.", len(coordinates))

    def place_stop_markers(self, stops: Sequence[Stop]) -> None:
        for stop in stops:
            logger.info(
                "Stop %s %s at (%.5f, %.5f)",
                stop.sequence,
                stop.label,
                stop.coordinate.latitude,
                stop.coordinate.longitude,
            )

    def place_vehicle_marker(self, coordinate: Coordinate, heading: float) -> None:
        self.marker = coordinate
        self.heading = heading
        logger.info(
            "Vehicle at (%.5f, %.5f), heading %.1f°",
            coordinate.latitude,
            coordinate.longitude,
            heading,
        )

    async def animate_marker(
        self,
        start: Coordinate,
        end: Coordinate,
        duration_ms: float,
        heading: float,
    ) -> None:
        self.heading = heading
        elapsed = 0.0
        for at_ms, point in animation_frames(start, end, duration_ms, self.frame_interval_ms):
            if at_ms > elapsed:
                await self._sleep((at_ms - elapsed) / 1000.0)
                elapsed = at_ms
            self.marker = point
            logger.debug("Marker frame %.0f ms -> (%.6f, %.6f)", at_ms, point.latitude, point.longitude)
        logger.info(
            "Vehicle moved to (%.5f, %.5f), heading %.1f°",
            end.latitude,
            end.longitude,
            heading,
        )

    def fit_to_region(self, region: ViewportRegion) -> None:
        self.region = region
        logger.info(
            "Framing map to S%.5f W%.5f N%.5f E%.5f (padding %dpx)",
            region.south,
            region.west,
            region.north,
            region.east,
            region.padding_px,
        )
