"""A generic, thread-safe pool of reusable resources."""

from __future__ import annotations

import abc
import contextlib
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Optional

_RETRY_INTERVAL = 0.01


class Resource(abc.ABC):
    """Something the pool hands out and takes back."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release whatever the resource holds."""

    @abc.abstractmethod
    def is_valid(self) -> bool:
        """Return whether the resource can still be used."""


class ResourceFactory(abc.ABC):
    """Creates resources for a pool and checks them on the way in and out."""

    @abc.abstractmethod
    def create(self) -> Resource:
        """Return a new resource."""

    def validate(self, resource: Resource) -> bool:
        """Return False to have ``resource`` destroyed instead of reused."""
        return resource is not None

    def reset(self, resource: Resource) -> None:
        """Clean ``resource`` before it is handed out again; raise to discard it."""
        if resource is None:
            raise ValueError("resource cannot be None")


class PoolError(Exception):
    """Raised when the pool cannot carry out a request."""


@dataclass
class PoolConfig:
    """Pool limits; times are in seconds."""

    max_size: int = 10
    min_size: int = 1
    max_idle: int = 5
    acquire_timeout: float = 30.0
    idle_timeout: float = 300.0
    validate_on_borrow: bool = True
    validate_on_return: bool = False


def default_config() -> PoolConfig:
    """Return a fresh configuration holding the default limits."""
    return PoolConfig()


@dataclass
class _PooledResource:
    resource: Any
    created_at: float
    last_used: float
    in_use: bool = False


class ResourcePool:
    """Hands out resources made by a factory, keeping idle ones for reuse."""

    def __init__(self, config: Optional[PoolConfig], factory: Optional[ResourceFactory]) -> None:
        if config is None:
            config = default_config()
        if factory is None:
            raise ValueError("factory cannot be None")
        if config.max_size <= 0:
            raise ValueError("max size must be positive")
        if config.min_size < 0:
            raise ValueError("min size cannot be negative")
        if config.min_size > config.max_size:
            raise ValueError("min size cannot be greater than max size")

        self.config = config
        self.factory = factory
        self._capacity = config.max_size
        self._available: Deque[_PooledResource] = deque()
        self._resources: Dict[int, _PooledResource] = {}
        self._lock = threading.Lock()
        self._closed = False
        self._stop = threading.Event()
        self._cleanup_thread: Optional[threading.Thread] = None

        try:
            self._pre_create()
        except Exception as err:
            self.close()
            raise PoolError(f"failed to pre-create resources: {err}") from err

        self._start_cleanup()

    def _pre_create(self) -> None:
        for index in range(self.config.min_size):
            try:
                resource = self.factory.create()
            except Exception as err:
                raise PoolError(f"failed to create resource {index}: {err}") from err
            now = time.monotonic()
            pooled = _PooledResource(resource, now, now)
            self._resources[id(resource)] = pooled
            self._available.append(pooled)

    def acquire(self) -> Resource:
        """Take a resource, waiting up to the configured acquire timeout."""
        return self.acquire_with_timeout(self.config.acquire_timeout)

    def acquire_with_timeout(self, timeout: float) -> Resource:
        """Take a resource, waiting at most ``timeout`` seconds for one."""
        with self._lock:
            if self._closed:
                raise PoolError("pool is closed")

        deadline = time.monotonic() + timeout
        while True:
            now = time.monotonic()
            if now >= deadline:
                raise TimeoutError(f"acquire timeout after {timeout}s")

            with self._lock:
                if self._closed:
                    raise PoolError("pool is closed")
                pooled = self._available.popleft() if self._available else None

            if pooled is None:
                resource = self._try_create()
                if resource is not None:
                    return resource
                time.sleep(min(_RETRY_INTERVAL, max(0.0, deadline - now)))
                continue

            resource = pooled.resource
            if self.config.validate_on_borrow and not (
                resource.is_valid() and self.factory.validate(resource)
            ):
                self._destroy(pooled)
                replacement = self._try_create()
                if replacement is not None:
                    return replacement
                continue

            try:
                self.factory.reset(resource)
            except Exception:
                self._destroy(pooled)
                continue

            with self._lock:
                pooled.in_use = True
                pooled.last_used = time.monotonic()
            return resource

    def _try_create(self) -> Optional[Resource]:
        """Create a new in-use resource, or return None if full or creation fails."""
        with self._lock:
            if len(self._resources) >= self.config.max_size:
                return None
            try:
                resource = self.factory.create()
            except Exception:
                return None
            now = time.monotonic()
            self._resources[id(resource)] = _PooledResource(resource, now, now, in_use=True)
            return resource

    def release(self, resource: Resource) -> None:
        """Give ``resource`` back to the pool."""
        if resource is None:
            raise ValueError("resource cannot be None")

        with self._lock:
            if self._closed:
                raise PoolError("pool is closed")

            pooled = self._resources.get(id(resource))
            if pooled is None or pooled.resource is not resource:
                raise PoolError("resource not managed by this pool")
            if not pooled.in_use:
                raise PoolError("resource is not in use")

            if self.config.validate_on_return and not (
                resource.is_valid() and self.factory.validate(resource)
            ):
                self._destroy_locked(pooled)
                return

            if len(self._available) >= self.config.max_idle:
                self._destroy_locked(pooled)
                return

            pooled.in_use = False
            pooled.last_used = time.monotonic()
            if len(self._available) < self._capacity:
                self._available.append(pooled)
            else:
                self._destroy_locked(pooled)

    def _destroy(self, pooled: _PooledResource) -> None:
        with self._lock:
            self._destroy_locked(pooled)

    def _destroy_locked(self, pooled: _PooledResource) -> None:
        with contextlib.suppress(Exception):
            pooled.resource.close()
        self._resources.pop(id(pooled.resource), None)

    def stats(self) -> Dict[str, Any]:
        """Return counts and limits describing the pool's current state."""
        with self._lock:
            in_use = sum(1 for pooled in self._resources.values() if pooled.in_use)
            return {
                "total_resources": len(self._resources),
                "available_resources": len(self._available),
                "in_use_resources": in_use,
                "max_size": self.config.max_size,
                "min_size": self.config.min_size,
                "max_idle": self.config.max_idle,
                "is_closed": self._closed,
            }

    def resize(self, new_max_size: int) -> None:
        """Change the maximum size, destroying idle resources above it."""
        if new_max_size <= 0:
            raise ValueError("new max size must be positive")

        with self._lock:
            if self._closed:
                raise PoolError("pool is closed")

            old_max_size = self.config.max_size
            self.config.max_size = new_max_size
            if new_max_size < old_max_size:
                excess = len(self._resources) - new_max_size
                while excess > 0 and self._available:
                    self._destroy_locked(self._available.popleft())
                    excess -= 1

    def _start_cleanup(self) -> None:
        if self.config.idle_timeout <= 0:
            return
        interval = self.config.idle_timeout / 2

        def run() -> None:
            while not self._stop.wait(interval):
                self._cleanup_idle()

        self._cleanup_thread = threading.Thread(target=run, daemon=True)
        self._cleanup_thread.start()

    def _cleanup_idle(self) -> None:
        with self._lock:
            if self._closed:
                return
            now = time.monotonic()
            expired = []
            while self._available:
                pooled = self._available.popleft()
                if now - pooled.last_used > self.config.idle_timeout:
                    expired.append(pooled)
                else:
                    self._available.append(pooled)
                    break
            for pooled in expired:
                self._destroy_locked(pooled)

    def close(self) -> None:
        """Stop the pool and close every resource it manages; safe to repeat."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

        self._stop.set()
        if self._cleanup_thread is not None:
            self._cleanup_thread.join()

        with self._lock:
            while self._available:
                self._destroy_locked(self._available.popleft())
            for pooled in list(self._resources.values()):
                self._destroy_locked(pooled)

    def __enter__(self) -> "ResourcePool":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()