"""Test settings.

Seeds the environment variables that ``config.settings`` requires
(Fail Fast) before importing it, then swaps external services for
in-process equivalents: SQLite in memory and the local-memory cache.
"""

import os

for _name, _value in {
    "SECRET_KEY": "test-secret-key-for-unit-tests-only",
    "SEQUEL247_TOKEN": "test-sequel-token",
    "SEQUEL247_STORE_CODE": "TESTSTORE01",
    "SEQUEL247_ORIGIN_PINCODE": "400001",
}.items():
    if not os.environ.get(_name, "").strip():
        os.environ[_name] = _value

from config.settings import *  # noqa: E402,F401,F403

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "jewelry-admin-tests",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

SEQUEL247_ENDPOINT = "https://test.sequel247.com/"
