"""
HTTP client for the school REST service's transport endpoints.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests

from .conf import get_tracking_config

LOGGER = logging.getLogger(__name__)


class RouteAPIClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls) -> "RouteAPIClient":
        config = get_tracking_config()
        return cls(config["api_base_url"], timeout=config["timeout_seconds"])

    def route_url(self, route_id: Optional[str] = None) -> str:
        url = f"{self.base_url}/api/transport/routes"
        if route_id is not None:
            url = f"{url}/{route_id}"
        return url

    def list_routes(self) -> List[Dict[str, Any]]:
        payload = self._get(self.route_url())
        if not isinstance(payload, list):
            raise ValueError("Route list response is not a JSON array.")
        return payload

    def fetch_route(self, route_id: str) -> Dict[str, Any]:
        payload = self._get(self.route_url(route_id))
        if not isinstance(payload, dict):
            raise ValueError(f"Route {route_id} response is not a JSON object.")
        return payload

    async def fetch_route_async(self, route_id: str) -> Dict[str, Any]:
        # requests blocks; keep the event loop free while the call is in flight.
        return await asyncio.to_thread(self.fetch_route, route_id)

    def _get(self, url: str) -> Any:
        LOGGER.debug("GET %s", url)
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as error:
            raise ValueError(f"Invalid JSON from {url}: {error}") from error
