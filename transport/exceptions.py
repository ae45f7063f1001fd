"""
Error taxonomy for the live tracking subsystem.

Only ``HydrationFailure`` is meant to reach the screen; the others are
absorbed by the poller and surfaced as log lines or transient notices.
"""
from __future__ import annotations

from typing import Optional


class TransportError(Exception):
    """Base class for transport tracking errors."""


class MalformedPathError(TransportError, ValueError):
    """An encoded route path could not be decoded."""


class HydrationFailure(TransportError):
    def __init__(self, route_id: str, cause: BaseException, session=None):
        super().__init__(f"Could not load route {route_id}: {cause}")
        self.route_id = route_id
        self.cause = cause
        self.session = session


class PollFailure(TransportError):
    def __init__(self, route_id: str, token: int, cause: BaseException):
        super().__init__(f"Could not update live location for route {route_id}: {cause}")
        self.route_id = route_id
        self.token = token
        self.cause = cause


class StaleResponseDiscarded(TransportError):
    def __init__(self, route_id: str, token: int, applied_token: Optional[int]):
        super().__init__(
            f"Poll {token} for route {route_id} is older than applied poll {applied_token}"
        )
        self.route_id = route_id
        self.token = token
        self.applied_token = applied_token
