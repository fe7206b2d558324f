# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS

- sqlite, isolated from any DATABASE_URL in the environment
- local-memory cache so the returns read cache is exercised but never shared
- fast password hashing
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import BASE_DIR  # explicit for Ruff (F405)

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": str(BASE_DIR / "test_db.sqlite3"),
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "returns-tests",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

RETURNS_CACHE_ENABLED = True
RETURNS_ENFORCE_CUMULATIVE_QUANTITY = True
