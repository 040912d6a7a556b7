"""Expiring key-value cache for one-time passcodes.

Lives outside the submission transaction boundary. The in-process store is
best-effort and single-process; set ``REDIS_URL`` to share codes across workers.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Protocol

from formbuilder.core.redis_client import get_sync_redis_client

OTP_KEY_PREFIX = "otp:"


class OtpStore(Protocol):
    def put(self, key: str, value: str, ttl: int) -> None: ...

    def get(self, key: str) -> str | None: ...

    def delete(self, key: str) -> None: ...


class InMemoryOtpStore:
    """TTL map guarded by a lock; expired entries are dropped on read."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def put(self, key: str, value: str, ttl: int) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)


class RedisOtpStore:
    def __init__(self, client):
        self._client = client

    def put(self, key: str, value: str, ttl: int) -> None:
        self._client.set(f"{OTP_KEY_PREFIX}{key}", value, ex=ttl)

    def get(self, key: str) -> str | None:
        value = self._client.get(f"{OTP_KEY_PREFIX}{key}")
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def delete(self, key: str) -> None:
        self._client.delete(f"{OTP_KEY_PREFIX}{key}")


_store: OtpStore | None = None


def get_otp_store() -> OtpStore:
    """Process-wide OTP store (Redis when configured, else in-memory)."""
    global _store
    if _store is None:
        client = get_sync_redis_client()
        _store = RedisOtpStore(client) if client is not None else InMemoryOtpStore()
    return _store


def reset_otp_store() -> None:
    global _store
    _store = None
