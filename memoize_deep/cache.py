import logging
import time
from typing import Any, Callable, Dict, Iterator, Optional

from . import metrics
from .entry import CacheEntry
from .schemas import UNSET

log = logging.getLogger("memoize_deep.cache")


class CacheStore:
    """Canonical key -> CacheEntry. Entries are created lazily and never evicted."""

    def __init__(self, default_value: Any = UNSET, name: str = "memoized", clock: Callable[[], float] = time.monotonic):
        self._entries: Dict[str, CacheEntry] = {}
        self._default_value = default_value
        self._clock = clock
        self.name = name

    def get(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def get_or_create(self, key: str) -> CacheEntry:
        # no await between lookup and insert, so one event loop cannot create duplicates
        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(key, self._default_value, name=self.name, clock=self._clock)
            self._entries[key] = entry
            metrics.entries.labels(self.name).set(len(self._entries))
            log.debug("entry created", extra={"function": self.name, "cache_key": key})
        return entry

    def clear(self) -> None:
        # in-flight fetches still finish, against entries nobody can reach anymore
        self._entries.clear()
        metrics.entries.labels(self.name).set(0)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
