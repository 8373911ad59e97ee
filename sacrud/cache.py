"""
Cache store for resource action results

Entries are grouped per resource. Any mutation of a resource invalidates all of its entries:
a cached `list` may contain any record, so per-key invalidation can't be correct.

Every invalidation bumps the resource "generation". A value computed before an invalidation
(i.e. a read that raced a write) is discarded by `put` instead of being stored stale.
"""

import copy
import hashlib
import json
import threading
from typing import Any, Dict, Iterable, Mapping, Optional
import sacrud

MISS = object()


def fingerprint(resource: str, action: str, params: Optional[Mapping[str, Any]] = None, keys: Optional[Iterable[str]] = None) -> str:
    """
    :param resource: resource name, e.g. "users"
    :param action: action name, e.g. "list"
    :param params: request parameters
    :param keys: the parameters that determine the result, in a fixed order.
                 If None, all params are used (sorted by name)
    :return: deterministic cache key, e.g. "users.list:3f2a..."
    """
    params = params or {}
    if keys is None:
        keys = sorted(params.keys())
    values = [[key, params.get(key)] for key in keys]
    digest = hashlib.sha256(json.dumps(values, sort_keys=True, default=str).encode("utf-8")).hexdigest()
    return f"{resource}.{action}:{digest}"


class CacheStore:
    """
    Process-wide, thread safe key -> value store
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._entries: Dict[str, Dict[str, Any]] = {}
        self._generations: Dict[str, int] = {}

    def generation(self, resource: str) -> int:
        """
        :return: the current generation of `resource`, pass it to `put`
        """
        with self._lock:
            return self._generations.get(resource, 0)

    def get(self, resource: str, key: str) -> Any:
        """
        :return: a copy of the cached value or `MISS`
        """
        with self._lock:
            value = self._entries.get(resource, {}).get(key, MISS)
        if value is MISS:
            return MISS
        return copy.deepcopy(value)

    def put(self, resource: str, key: str, value: Any, generation: Optional[int] = None) -> bool:
        """
        Store a copy of `value`
        :param generation: generation observed before `value` was computed
        :return: False if the value was discarded because the resource was invalidated meanwhile
        """
        value = copy.deepcopy(value)
        with self._lock:
            if generation is not None and generation != self._generations.get(resource, 0):
                sacrud.log.debug(f"Discarding stale cache entry {key}")
                return False
            self._entries.setdefault(resource, {})[key] = value
            return True

    def invalidate(self, resource: str) -> None:
        """
        Drop all entries of `resource`
        """
        with self._lock:
            self._entries.pop(resource, None)
            self._generations[resource] = self._generations.get(resource, 0) + 1
        sacrud.log.debug(f"Cache invalidated for {resource}")

    def clear(self) -> None:
        with self._lock:
            for resource in list(self._entries):
                self._generations[resource] = self._generations.get(resource, 0) + 1
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return sum(len(entries) for entries in self._entries.values())
