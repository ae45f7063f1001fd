import asyncio

from django.test import SimpleTestCase

from transport.models import Coordinate, Stop
from transport.services import ViewportRegion
from transport.surfaces import LoggingMapSurface


class LoggingMapSurfaceTests(SimpleTestCase):
    def setUp(self):
        self.sleeps = []

        async def fake_sleep(seconds):
            self.sleeps.append(seconds)

        self.surface = LoggingMapSurface(frame_interval_ms=50, sleep=fake_sleep)

    def test_glide_paces_frames_and_lands_on_target(self):
        start, end = Coordinate(12.0, 77.0), Coordinate(12.1, 77.1)

        with self.assertLogs("transport.surfaces", level="INFO") as logs:
            asyncio.run(self.surface.animate_marker(start, end, 200, 44.4))

        self.assertEqual(self.sleeps, [0.05, 0.05, 0.05, 0.05])
        self.assertEqual(self.surface.marker, end)
        self.assertEqual(self.surface.heading, 44.4)
        self.assertIn("Vehicle moved to", logs.output[-1])

    def test_marker_and_region_are_remembered(self):
        region = ViewportRegion(10.75, 78.69, 10.80, 78.72, 50)
        self.surface.place_vehicle_marker(Coordinate(10.78, 78.70), 90.0)
        self.surface.fit_to_region(region)

        self.assertEqual(self.surface.marker, Coordinate(10.78, 78.70))
        self.assertEqual(self.surface.heading, 90.0)
        self.assertIs(self.surface.region, region)

    def test_stop_markers_are_logged_in_order(self):
        stops = [
            Stop(1, "Senthaneerpuram", Coordinate(10.8061, 78.6949)),
            Stop(2, "Ponmalai", Coordinate(10.7990, 78.7010)),
        ]
        with self.assertLogs("transport.surfaces", level="INFO") as logs:
            self.surface.place_stop_markers(stops)

        self.assertEqual(len(logs.output), 2)
        self.assertIn("Senthaneerpuram", logs.output[0])
        self.assertIn("Ponmalai", logs.output[1])
