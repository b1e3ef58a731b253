from __future__ import annotations

from typing import Callable, Any, Optional

from flask_caching import Cache


class CacheFacade:
    """Optional Flask-Caching layer in front of series lookups.

    Without a cache, `memoize` returns the function unchanged, so the repository
    behaves the same in tests and scripts. Memoized names are prefixed with
    `namespace` so several repositories can share one cache backend.

    Entries are invalidated per key through a version counter kept in the same
    backend: callers fold `version(key)` into their memoize arguments and call
    `bump(key)` after a write, so every worker sharing the backend misses.
    """

    def __init__(self, cache: Optional[Cache], timeout_seconds: int, namespace: str = "series") -> None:
        self.cache = cache
        self.timeout_seconds = timeout_seconds
        self.namespace = namespace

    def memoize(self, fn: Callable[..., Any]) -> Callable[..., Any]:
        if self.cache is None:
            return fn
        return self.cache.memoize(
            timeout=self.timeout_seconds,
            make_name=lambda name: f"{self.namespace}.{name}",
        )(fn)

    def _version_key(self, key: str) -> str:
        return f"{self.namespace}.version.{key}"

    def version(self, key: str) -> int:
        if self.cache is None:
            return 0
        return int(self.cache.get(self._version_key(key)) or 0)

    def bump(self, key: str) -> int:
        if self.cache is None:
            return 0
        new = self.version(key) + 1
        # no expiry
        self.cache.set(self._version_key(key), new, timeout=0)
        return new
