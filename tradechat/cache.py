import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    """Async in-memory cache with per-entry expiry and LRU eviction.

    Entries expire ``ttl`` seconds after they are written and are evicted
    lazily on the next read. Values are replaced wholesale on ``set``;
    cached snapshots are never patched in place.
    """

    def __init__(
        self,
        default_ttl: float = 30,
        max_size: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self.max_size = max_size
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.value

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        async with self._lock:
            lifetime = self.default_ttl if ttl is None else ttl
            self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + lifetime)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl: Optional[float] = None,
    ) -> Any:
        """Return the live entry for ``key`` or store the loader's result.

        Loader failures propagate and leave the cache untouched.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached
        value = await loader()
        await self.set(key, value, ttl=ttl)
        return value

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    def size(self) -> int:
        return len(self._entries)


def cache_key(name: str, *params: Any) -> str:
    """Build a key from a query name and its parameters."""
    if not params:
        return name
    return ":".join([name, *(str(p) for p in params)])
