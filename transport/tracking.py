"""
Live vehicle tracking for a single route view.

A ``LiveLocationPoller`` hydrates the route once, frames the map, then polls
the route endpoint on a fixed interval. Each applied sample goes through the
movement gate; real movement recomputes the heading and glides the marker to
the new fix through a ``PositionAnimator``. Glides run as background tasks,
so a slow or stalled animation never delays the next poll.

Every poll carries a sequence token issued at send time. A response is only
applied if its token is not older than the newest one already applied, and
never after the session has been stopped.
"""
from __future__ import annotations

import asyncio
import collections
import functools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, Optional, Set

from .exceptions import HydrationFailure, PollFailure, StaleResponseDiscarded
from .models import Coordinate
from .services import RouteGeometryStore, ViewportFitter, bearing, haversine_km, has_moved
from .surfaces import MapSurface

logger = logging.getLogger(__name__)

POLL_INTERVAL_MS = 5000
ANIMATION_DURATION_MS = 2000
VIEWPORT_PADDING_PX = 50
MAX_NOTICES = 20

Fetch = Callable[[str], Awaitable[Any]]


class SessionState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    TRACKING = "tracking"
    STOPPED = "stopped"
    ERROR = "error"


@dataclass
class TrackingSession:
    route_id: str
    state: SessionState = SessionState.IDLE
    geometry: RouteGeometryStore = field(default_factory=RouteGeometryStore)
    last_rendered: Optional[Coordinate] = None
    last_sample: Optional[Coordinate] = None
    heading: float = 0.0
    issued_token: int = 0
    applied_token: int = 0
    notices: Deque[PollFailure] = field(default_factory=lambda: collections.deque(maxlen=MAX_NOTICES))
    error: Optional[HydrationFailure] = None
    _timer: Optional[asyncio.Task] = field(default=None, repr=False)
    _glides: Set[asyncio.Task] = field(default_factory=set, repr=False)

    @property
    def route(self):
        return self.geometry.route

    @property
    def is_tracking(self) -> bool:
        return self.state is SessionState.TRACKING

    def issue_token(self) -> int:
        self.issued_token += 1
        return self.issued_token

    def check_applicable(self, token: int) -> None:
        if token < self.applied_token:
            raise StaleResponseDiscarded(self.route_id, token, self.applied_token)


class PositionAnimator:
    """
    Sequences marker glides. Glides never overlap: a newer target waits until
    the previous heading hand-off and glide have completed.
    """

    def __init__(self, surface: MapSurface, duration_ms: float = ANIMATION_DURATION_MS):
        self.surface = surface
        self.duration_ms = duration_ms
        self._lock = asyncio.Lock()

    async def animate_to(self, start: Coordinate, end: Coordinate, heading: float) -> bool:
        if start == end:
            return False
        async with self._lock:
            await self.surface.animate_marker(start, end, self.duration_ms, heading)
        return True


class LiveLocationPoller:
    def __init__(
        self,
        fetch: Fetch,
        surface: MapSurface,
        *,
        poll_interval_ms: float = POLL_INTERVAL_MS,
        animation_duration_ms: float = ANIMATION_DURATION_MS,
        viewport_padding_px: int = VIEWPORT_PADDING_PX,
        on_notice: Optional[Callable[[PollFailure], None]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.fetch = fetch
        self.surface = surface
        self.poll_interval_ms = poll_interval_ms
        self.viewport_padding_px = viewport_padding_px
        self.on_notice = on_notice
        self.animator = PositionAnimator(surface, animation_duration_ms)
        self.fitter = ViewportFitter(surface)
        self._sleep = sleep

    async def start(self, route_id: str) -> TrackingSession:
        """
        Hydrate the route and begin polling.

        Raises ``HydrationFailure`` (with the failed session attached) if the
        initial load fails; polling is never armed in that case.
        """
        session = TrackingSession(route_id=route_id)
        session.state = SessionState.LOADING

        try:
            payload = await self.fetch(route_id)
            route = session.geometry.hydrate(route_id, payload)
            self._render_route(session)
            position = route.last_known_position
            if position is not None and session.geometry.has_path:
                self.surface.place_vehicle_marker(position, session.heading)
        except Exception as error:
            failure = HydrationFailure(route_id, error, session)
            session.state = SessionState.ERROR
            session.error = failure
            logger.error("Could not load route %s: %s", route_id, error)
            raise failure from error

        session.last_sample = position
        session.last_rendered = position

        session.state = SessionState.TRACKING
        session._timer = asyncio.ensure_future(self._run(session))
        logger.info("Tracking route %s every %d ms.", route_id, self.poll_interval_ms)
        return session

    def stop(self, session: TrackingSession) -> None:
        if session.state is SessionState.STOPPED:
            return
        session.state = SessionState.STOPPED
        if session._timer is not None:
            session._timer.cancel()
            session._timer = None
        for glide in list(session._glides):
            glide.cancel()
        logger.info("Stopped tracking route %s.", session.route_id)

    async def join(self, session: TrackingSession) -> None:
        timer = session._timer
        if timer is None:
            return
        try:
            await timer
        except asyncio.CancelledError:
            if not timer.cancelled():
                raise

    async def poll_once(self, session: TrackingSession) -> bool:
        """
        Fetch and apply one live sample. Returns True if the sample was applied.
        """
        if not session.is_tracking:
            return False

        token = session.issue_token()
        try:
            payload = await self.fetch(session.route_id)
        except Exception as error:
            if session.is_tracking:
                self._notify(session, PollFailure(session.route_id, token, error))
            return False

        if not session.is_tracking:
            logger.debug("Dropping poll %d for route %s: session is %s.", token, session.route_id, session.state.value)
            return False

        try:
            session.check_applicable(token)
        except StaleResponseDiscarded as stale:
            logger.debug("%s", stale)
            return False

        try:
            _, position = session.geometry.merge(payload)
        except (TypeError, ValueError) as error:
            self._notify(session, PollFailure(session.route_id, token, error))
            return False

        session.applied_token = token
        if position is not None:
            self._apply_position(session, position)
        return True

    async def _run(self, session: TrackingSession) -> None:
        interval = self.poll_interval_ms / 1000.0
        try:
            while session.is_tracking:
                await self._sleep(interval)
                if not session.is_tracking:
                    break
                await self.poll_once(session)
        except Exception:
            logger.exception("Live tracking for route %s stopped unexpectedly.", session.route_id)
            session.state = SessionState.ERROR
            raise

    def _render_route(self, session: TrackingSession) -> None:
        geometry = session.geometry
        if geometry.has_path:
            self.surface.draw_path(geometry.path)
        stops = geometry.route.plottable_stops
        if stops:
            self.surface.place_stop_markers(stops)
        # A single point has no extent to frame.
        if len(geometry.path) > 1:
            self.fitter.fit(geometry.path, self.viewport_padding_px)

    def _apply_position(self, session: TrackingSession, position: Coordinate) -> None:
        previous = session.last_sample
        session.last_sample = position

        if previous is None:
            session.last_rendered = position
            if session.geometry.has_path:
                self.surface.place_vehicle_marker(position, session.heading)
            return

        if not has_moved(previous, position):
            return

        heading = bearing(previous, position)
        session.heading = heading
        start = session.last_rendered or previous
        session.last_rendered = position
        logger.info(
            "Route %s vehicle moved %.0f m, heading %.1f°.",
            session.route_id,
            haversine_km(previous, position) * 1000,
            heading,
        )
        if session.geometry.has_path:
            glide = asyncio.ensure_future(self.animator.animate_to(start, position, heading))
            session._glides.add(glide)
            glide.add_done_callback(functools.partial(self._glide_done, session))

    def _glide_done(self, session: TrackingSession, glide: asyncio.Task) -> None:
        session._glides.discard(glide)
        if glide.cancelled():
            return
        error = glide.exception()
        if error is not None:
            logger.error("Marker animation for route %s failed: %s", session.route_id, error)

    def _notify(self, session: TrackingSession, failure: PollFailure) -> None:
        logger.warning("%s", failure)
        session.notices.append(failure)
        if self.on_notice is not None:
            self.on_notice(failure)
