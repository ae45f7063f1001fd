import asyncio
from unittest import mock

import requests
from django.test import SimpleTestCase, override_settings

from transport.client import RouteAPIClient

from .fakes import route_payload


def fake_session(payload=None, error=None):
    response = mock.Mock()
    response.json.return_value = payload
    if error is not None:
        response.raise_for_status.side_effect = error
    session = mock.Mock(spec=requests.Session)
    session.get.return_value = response
    return session


class RouteAPIClientTests(SimpleTestCase):
    def test_fetch_route_hits_route_endpoint_with_timeout(self):
        session = fake_session(route_payload())
        client = RouteAPIClient("http://school.test/", timeout=4, session=session)

        payload = client.fetch_route("7")

        session.get.assert_called_once_with("http://school.test/api/transport/routes/7", timeout=4)
        self.assertEqual(payload["route_name"], "Route-1")

    def test_list_routes_hits_collection_endpoint(self):
        routes = [{"route_id": 7, "route_name": "Route-1"}]
        session = fake_session(routes)
        client = RouteAPIClient("http://school.test", session=session)

        self.assertEqual(client.list_routes(), routes)
        session.get.assert_called_once_with("http://school.test/api/transport/routes", timeout=10)

    def test_http_errors_propagate(self):
        session = fake_session(error=requests.HTTPError("500 Server Error"))
        client = RouteAPIClient("http://school.test", session=session)

        with self.assertRaises(requests.HTTPError):
            client.fetch_route("7")

    def test_unexpected_shapes_are_rejected(self):
        client = RouteAPIClient("http://school.test", session=fake_session(["not", "a", "route"]))
        with self.assertRaises(ValueError):
            client.fetch_route("7")

        client = RouteAPIClient("http://school.test", session=fake_session({"route_id": 7}))
        with self.assertRaises(ValueError):
            client.list_routes()

    def test_invalid_json_is_a_value_error(self):
        session = fake_session()
        session.get.return_value.json.side_effect = ValueError("Expecting value")
        client = RouteAPIClient("http://school.test", session=session)

        with self.assertRaisesMessage(ValueError, "Invalid JSON from http://school.test/api/transport/routes/7"):
            client.fetch_route("7")

    @override_settings(TRANSPORT_TRACKING={"api_base_url": "http://api.school.test/", "timeout_seconds": 3})
    def test_from_settings_reads_tracking_config(self):
        client = RouteAPIClient.from_settings()

        self.assertEqual(client.base_url, "http://api.school.test")
        self.assertEqual(client.timeout, 3)

    def test_async_fetch_returns_payload(self):
        client = RouteAPIClient("http://school.test", session=fake_session(route_payload()))

        payload = asyncio.run(client.fetch_route_async("7"))

        self.assertEqual(payload["route_id"], 7)
