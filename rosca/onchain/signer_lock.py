import os
import random
import threading
import time
from contextlib import contextmanager
from typing import Dict, Optional

from redis import Redis

from .exceptions import SignerLockNotAcquired

LOCK = "rosca:signer:lock:{address}"
TASK_LOCK = "rosca:task:lock:{name}"

# atomic unlock (delete only if token matches the current value)
# returns 1 if deleted, 0 otherwise
_UNLOCK_LUA = """
if redis.call('get', KEYS[1]) == ARGV[1] then
  return redis.call('del', KEYS[1])
else
  return 0
end
"""


class LocalSignerLock:
    """One in-flight transaction per signing address within this process."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, address: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(address.lower(), threading.Lock())

    @contextmanager
    def hold(self, address: str):
        lock = self._lock_for(address)
        with lock:
            yield True


class RedisSignerLock(LocalSignerLock):
    """
    Cross-process variant: the local lock serialises threads, a Redis token
    lock serialises processes (Celery workers) sharing the same key.
    """

    def __init__(
        self,
        r: Optional[Redis] = None,
        url: str = "redis://redis:6379/0",
        ttl: int = 180,
        wait_timeout: Optional[float] = None,
        backoff_base: float = 0.1,
    ):
        super().__init__()
        self.r = r or Redis.from_url(url)
        self.ttl = ttl
        # wait at most one full hold of the current owner
        self.wait_timeout = self.ttl if wait_timeout is None else wait_timeout
        self.backoff_base = backoff_base

    @contextmanager
    def hold(self, address: str):
        """
        Acquire the signer lock, waiting up to ``wait_timeout`` seconds.

        Exponential backoff with jitter (capped at 2s) to reduce contention.
        Uses a token and Lua script to release safely.
        """
        with super().hold(address):
            key = LOCK.format(address=address.lower())
            token = f"{time.time()}:{os.getpid()}:{random.random()}"
            deadline = time.monotonic() + self.wait_timeout

            attempt = 0
            while not self.r.set(key, token, nx=True, ex=self.ttl):
                if time.monotonic() >= deadline:
                    raise SignerLockNotAcquired(
                        f"Could not acquire signer lock for {address}"
                    )
                sleep_s = min(2.0, self.backoff_base * (2**attempt)) * (0.5 + random.random())
                time.sleep(sleep_s)
                attempt += 1

            try:
                yield True
            finally:
                # only delete if token matches
                self.r.eval(_UNLOCK_LUA, 1, key, token)


class SingleFlight:
    """
    Non-blocking Redis token lock keyed by job name. At most one holder across
    all worker processes; a crashed holder is released by the TTL.
    """

    def __init__(self, r: Redis, name: str, ttl: int):
        self.r = r
        self.name = name
        self.ttl = ttl

    @contextmanager
    def hold(self):
        key = TASK_LOCK.format(name=self.name)
        token = f"{time.time()}:{os.getpid()}:{random.random()}"
        if not self.r.set(key, token, nx=True, ex=self.ttl):
            yield False
            return
        try:
            yield True
        finally:
            self.r.eval(_UNLOCK_LUA, 1, key, token)


def redis_from_settings() -> Redis:
    from django.conf import settings

    return Redis.from_url(settings.SIGNER_LOCK_URL)


def build_signer_lock(
    backend: str = "local", url: str = "", ttl: int = 180, r: Optional[Redis] = None
):
    if backend == "redis":
        return RedisSignerLock(r=r, url=url, ttl=ttl)
    if backend != "local":
        raise ValueError(f"Unknown signer lock backend: {backend}")
    return LocalSignerLock()
