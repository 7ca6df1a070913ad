# ------------------------------------------------------------
# cache.py
#
# Short-lived memoization of first-page search results.
#
# Entries live for 5 minutes. Expired entries are reported as misses
# and stay in the dict until the next put() for the same key replaces
# them; nothing sweeps the cache.
# ------------------------------------------------------------

import copy
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from models import CacheEntry, CareProvider


logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 300


@dataclass(frozen=True)
class CacheKey:
    """
    Identity of a search. Coordinates are rounded to 4 decimals (~11 m)
    and the radius to 1 decimal so tiny GPS jitter still hits the cache.
    """
    kind: str
    latitude: Optional[float]
    longitude: Optional[float]
    radius: Optional[float]
    query: Optional[str] = None

    @classmethod
    def build(cls, kind, latitude=None, longitude=None, radius=None, query=None) -> "CacheKey":
        return cls(
            kind=kind,
            latitude=None if latitude is None else round(float(latitude), 4),
            longitude=None if longitude is None else round(float(longitude), 4),
            radius=None if radius is None else round(float(radius), 1),
            query=query or None,
        )


class ResultCache:
    """
    Thread-safe TTL cache of CacheEntry objects.

    The clock is injectable so expiry can be tested without sleeping.
    """

    def __init__(self, ttl_seconds: float = CACHE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(key)
            now = self._clock()
        if entry is None:
            return None
        if now - entry.captured_at > self.ttl_seconds:
            logger.debug("Cache entry expired for %s", key)
            return None
        return entry

    def put(self, key: CacheKey, providers: List[CareProvider], next_page_token: Optional[str] = None) -> CacheEntry:
        entry = CacheEntry(
            providers=tuple(copy.deepcopy(list(providers))),
            captured_at=self._clock(),
            next_page_token=next_page_token,
        )
        with self._lock:
            self._entries[key] = entry
        return entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.debug("Result cache cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
