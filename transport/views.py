from __future__ import annotations

import logging

import requests
from django.http import JsonResponse
from django.views.generic import View

from .client import RouteAPIClient
from .conf import get_tracking_config
from .services import RouteGeometryStore, ViewportFitter

logger = logging.getLogger(__name__)


class RouteListAPIView(View):
    def get(self, request, *args, **kwargs):
        client = RouteAPIClient.from_settings()
        try:
            routes = client.list_routes()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"Error fetching transport routes: {e}")
            return JsonResponse({"routes": [], "error": "Could not fetch routes."}, status=502)

        return JsonResponse(
            {
                "routes": [
                    {"route_id": item.get("route_id"), "route_name": item.get("route_name")}
                    for item in routes
                    if isinstance(item, dict)
                ]
            }
        )


class RouteMapAPIView(View):
    """
    Hydrated map data for one route: decoded path, stops, the initial
    viewport and the vehicle's last known position.
    """

    def get(self, request, *args, **kwargs):
        route_id = self.kwargs["route_id"]
        client = RouteAPIClient.from_settings()
        try:
            payload = client.fetch_route(route_id)
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error(f"Route service returned {status} for route {route_id}.")
            if status == 404:
                return JsonResponse({"error": "Route not found"}, status=404)
            return JsonResponse({"error": "Could not fetch route details."}, status=502)
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"Error fetching route {route_id}: {e}")
            return JsonResponse({"error": "Could not fetch route details."}, status=502)

        store = RouteGeometryStore()
        store.hydrate(route_id, payload)

        viewport = None
        if len(store.path) > 1:
            padding = get_tracking_config()["viewport_padding_px"]
            viewport = ViewportFitter().fit(store.path, padding)

        return JsonResponse(store.snapshot(viewport))
