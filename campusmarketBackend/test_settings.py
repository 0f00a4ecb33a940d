import os

# Mock SECRET_KEY for tests BEFORE importing settings to bypass validation
os.environ.setdefault("SECRET_KEY", "django-insecure-test-key-for-unit-tests-only")

from .settings import *  # noqa: F403

# Override Database to use SQLite for tests
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "test_db.sqlite3",  # noqa: F405
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.dummy.DummyCache",
    }
}

CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels.layers.InMemoryChannelLayer",
    }
}

# Disable external services
INFRASTRUCTURE["EVENT_BUS_BACKEND"] = "memory"  # noqa: F405
INFRASTRUCTURE["EVENT_BUS_LISTEN"] = False  # noqa: F405
INFRASTRUCTURE["PAYMENT_PROVIDER"] = "mock"  # noqa: F405
WEBSOCKET_THROTTLE["ENABLED"] = False  # noqa: F405

OTEL_TRACING_ENABLED = False

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

# Enable SessionAuthentication for tests to support client.force_login()
REST_FRAMEWORK["DEFAULT_AUTHENTICATION_CLASSES"].append(  # noqa: F405
    "rest_framework.authentication.SessionAuthentication"
)
