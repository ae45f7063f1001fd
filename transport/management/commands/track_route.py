import asyncio

from django.core.management.base import BaseCommand, CommandError

from transport.client import RouteAPIClient
from transport.conf import get_tracking_config
from transport.exceptions import HydrationFailure
from transport.surfaces import LoggingMapSurface
from transport.tracking import LiveLocationPoller


class Command(BaseCommand):
    help = "Follow a route's vehicle live, logging path, stops and marker movement."

    def add_arguments(self, parser):
        parser.add_argument("route_id")
        parser.add_argument(
            "--duration",
            type=float,
            default=None,
            help="Stop after this many seconds (default: run until interrupted).",
        )
        parser.add_argument(
            "--interval",
            type=int,
            default=None,
            help="Poll interval in milliseconds (default: TRANSPORT_TRACKING['poll_interval_ms']).",
        )

    def handle(self, *args, **options):
        config = get_tracking_config()
        try:
            asyncio.run(self._track(options["route_id"], options["duration"], options["interval"], config))
        except KeyboardInterrupt:
            self.stdout.write("Tracking interrupted.")

    async def _track(self, route_id, duration, interval, config):
        client = RouteAPIClient.from_settings()
        poller = LiveLocationPoller(
            client.fetch_route_async,
            LoggingMapSurface(frame_interval_ms=config["frame_interval_ms"]),
            poll_interval_ms=interval or config["poll_interval_ms"],
            animation_duration_ms=config["animation_duration_ms"],
            viewport_padding_px=config["viewport_padding_px"],
            on_notice=lambda failure: self.stderr.write(f"Could not update live location: {failure.cause}"),
        )

        try:
            session = await poller.start(route_id)
        except HydrationFailure as error:
            raise CommandError(str(error)) from error

        route = session.route
        self.stdout.write(self.style.SUCCESS(f"Tracking {route.name or route.id}"))
        if route.driver.name:
            self.stdout.write(f"Driver: {route.driver.name} {route.driver.phone or ''}".rstrip())
        if route.conductor.name:
            self.stdout.write(f"Conductor: {route.conductor.name} {route.conductor.phone or ''}".rstrip())
        if not session.geometry.has_path:
            self.stdout.write("Route map is unavailable; listing stops only.")

        try:
            if duration is not None:
                await asyncio.sleep(duration)
            else:
                await poller.join(session)
        finally:
            poller.stop(session)
