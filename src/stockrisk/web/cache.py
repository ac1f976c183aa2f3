"""In-memory cache for deterministic (seeded) simulation results."""

import copy
import logging
from typing import Any

from cachetools import TTLCache

logger = logging.getLogger(__name__)


class CacheService:
    """TTL-bounded result cache keyed by the full seeded request."""

    def __init__(self, ttl: int = 300, maxsize: int = 256):
        self._ttl = ttl
        self._memory = TTLCache(maxsize=maxsize, ttl=ttl)

    def get(self, key: str) -> Any | None:
        """Get a cached value by key (a copy, so callers cannot mutate it)."""
        value = self._memory.get(key)
        if value is not None:
            logger.debug("Cache hit: %s", key)
            return copy.deepcopy(value)
        return None

    def set(self, key: str, value: Any) -> None:
        self._memory[key] = copy.deepcopy(value)

    def clear(self) -> None:
        self._memory.clear()

    def __len__(self) -> int:
        return len(self._memory)
