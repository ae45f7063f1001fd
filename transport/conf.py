from __future__ import annotations

from typing import Any, Dict

from django.conf import settings

DEFAULTS: Dict[str, Any] = {
    "api_base_url": "http://localhost:3001",
    "timeout_seconds": 10,
    "poll_interval_ms": 5000,
    "animation_duration_ms": 2000,
    "viewport_padding_px": 50,
    "frame_interval_ms": 50,
}


def get_tracking_config() -> Dict[str, Any]:
    """``settings.TRANSPORT_TRACKING`` layered over the built-in defaults."""
    config = dict(DEFAULTS)
    config.update(getattr(settings, "TRANSPORT_TRACKING", {}) or {})
    return config
