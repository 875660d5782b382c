# core/cache.py

"""
In-memory TTL cache for users' effective permission sets.

Every request that needs a permission check would otherwise re-read the
user row and its role grants. Entries live for PERMISSIONS_CACHE_TTL
seconds and any role, grant or binding change clears them.
"""

from typing import Optional
from datetime import datetime, timedelta
from threading import Lock

from core.config import settings
from core.logging_config import logger


class CacheEntry:
    """A cached permission set with its expiry time."""

    def __init__(self, permissions: frozenset, ttl_seconds: int):
        self.permissions = permissions
        self.expires_at = datetime.now() + timedelta(seconds=ttl_seconds)

    def is_expired(self) -> bool:
        return datetime.now() >= self.expires_at


class PermissionCache:
    """
    Maps user id → frozenset of permission codes.

    Thread-safe: FastAPI runs sync endpoints in a threadpool.
    """

    def __init__(self):
        self._entries: dict[str, CacheEntry] = {}
        self._lock = Lock()

    def get(self, user_id: str) -> Optional[frozenset]:
        """Cached permission set, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(user_id)
            if entry is None:
                return None

            if entry.is_expired():
                del self._entries[user_id]
                return None

            return entry.permissions

    def set(self, user_id: str, permissions: frozenset, ttl_seconds: Optional[int] = None):
        if ttl_seconds is None:
            ttl_seconds = settings.PERMISSIONS_CACHE_TTL
        with self._lock:
            self._entries[user_id] = CacheEntry(frozenset(permissions), ttl_seconds)

    def delete(self, user_id: str):
        with self._lock:
            self._entries.pop(user_id, None)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._entries)


# Global cache instance
_cache = PermissionCache()


def cache_get(user_id: str) -> Optional[frozenset]:
    return _cache.get(user_id)


def cache_set(user_id: str, permissions: frozenset, ttl_seconds: Optional[int] = None):
    _cache.set(user_id, permissions, ttl_seconds)


def cache_delete(user_id: str):
    _cache.delete(user_id)


def cache_clear():
    """Drop every cached permission set (after a role or grant change)."""
    if _cache.size():
        logger.debug("Permission cache cleared")
    _cache.clear()
