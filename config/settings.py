import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-secret")
DEBUG = os.environ.get("DJANGO_DEBUG", "1") == "1"
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")

INSTALLED_APPS = [
    "transport",
]

MIDDLEWARE = [
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "config.urls"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

USE_TZ = True
TIME_ZONE = "UTC"

TRANSPORT_TRACKING = {
    "api_base_url": os.environ.get("TRANSPORT_API_BASE_URL", "http://localhost:3001"),
    "timeout_seconds": 10,
    "poll_interval_ms": int(os.environ.get("TRANSPORT_POLL_INTERVAL_MS", 5000)),
    "animation_duration_ms": int(os.environ.get("TRANSPORT_ANIMATION_DURATION_MS", 2000)),
    "viewport_padding_px": int(os.environ.get("TRANSPORT_VIEWPORT_PADDING_PX", 50)),
    "frame_interval_ms": int(os.environ.get("TRANSPORT_FRAME_INTERVAL_MS", 50)),
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "transport": {
            "handlers": ["console"],
            "level": os.environ.get("TRANSPORT_LOG_LEVEL", "INFO"),
        },
    },
}
