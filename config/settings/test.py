from .base import *  # noqa
from .base import BASE_DIR
from .base import REST_FRAMEWORK as BASE_REST_FRAMEWORK

# Test settings: local SQLite database for reliability and speed
DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "test_db.sqlite3",
    }
}

# The test runner swaps this for locmem so mail.outbox is populated
EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

# Fast hashing keeps signup/login tests quick
PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
    },
    "staticfiles": {
        "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
    },
}

# Directory sync stays disabled unless a test configures it explicitly
STREAM_API_KEY = ""
STREAM_API_SECRET = ""

# Relax throttling for tests to reduce flakiness
REST_FRAMEWORK = {**BASE_REST_FRAMEWORK}
REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {
    key: "1000/min" for key in BASE_REST_FRAMEWORK.get("DEFAULT_THROTTLE_RATES", {})
}
