# returns/services/cache.py

"""
RETURN READ CACHE

Read-through cache for single-return lookups, keyed by return id.

Rules:
- Never authoritative: every write path calls invalidate() explicitly
- A cache failure never fails the request (logged, then treated as a miss)
- Injected into ReturnService; NullReturnCache disables caching entirely
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.core.cache import caches

logger = logging.getLogger(__name__)

RETURN_CACHE_KEY = "returns:return:{return_id}"


class NullReturnCache:
    """Cache that never stores anything."""

    def get(self, return_id):
        return None

    def set(self, return_id, value) -> None:
        return None

    def invalidate(self, return_id) -> None:
        return None


class ReturnCache(NullReturnCache):
    def __init__(self, *, alias: str = "default", timeout: int = 300):
        self.alias = alias
        self.timeout = timeout

    @property
    def backend(self):
        return caches[self.alias]

    @staticmethod
    def key(return_id) -> str:
        return RETURN_CACHE_KEY.format(return_id=return_id)

    def get(self, return_id):
        try:
            return self.backend.get(self.key(return_id))
        except Exception:
            logger.exception("Return cache read failed", extra={"return_id": str(return_id)})
            return None

    def set(self, return_id, value) -> None:
        try:
            self.backend.set(self.key(return_id), value, self.timeout)
        except Exception:
            logger.exception("Return cache write failed", extra={"return_id": str(return_id)})

    def invalidate(self, return_id) -> None:
        try:
            self.backend.delete(self.key(return_id))
        except Exception:
            logger.exception("Return cache invalidation failed", extra={"return_id": str(return_id)})


def build_return_cache():
    if not getattr(settings, "RETURNS_CACHE_ENABLED", False):
        return NullReturnCache()

    return ReturnCache(
        alias=getattr(settings, "RETURNS_CACHE_ALIAS", "default") or "default",
        timeout=int(getattr(settings, "RETURNS_CACHE_TIMEOUT", 300)),
    )
