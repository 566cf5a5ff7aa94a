"""
In-memory result cache keyed by the exact input text.
"""

import threading
from typing import Any, Dict, MutableMapping, Optional

from cachetools import LRUCache

from adaptive_sentiment.monitoring.metrics import CACHE_ACCESS_TOTAL
from adaptive_sentiment.utils.logger import get_logger

from .models import SentimentResult

logger = get_logger(__name__)


class _EvictionCountingLRUCache(LRUCache):
    """LRUCache that counts entries dropped to stay within maxsize"""

    def __init__(self, maxsize: int):
        super().__init__(maxsize=maxsize)
        self.evictions = 0

    def popitem(self):
        key, value = super().popitem()
        self.evictions += 1
        return key, value


class ResultCache:
    """Thread-safe LRU cache of sentiment results"""

    def __init__(self, max_entries: Optional[int] = 1024, name: str = "sentiment_results"):
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be positive or None")
        self.max_entries = max_entries
        self.name = name
        self._entries = self._new_store()
        self._lock = threading.Lock()

        # Performance tracking
        self.cache_hits = 0
        self.cache_misses = 0
        self._evictions_before_clear = 0

    def _new_store(self) -> MutableMapping[str, SentimentResult]:
        if self.max_entries is None:
            return {}
        return _EvictionCountingLRUCache(self.max_entries)

    @property
    def evictions(self) -> int:
        return self._evictions_before_clear + getattr(self._entries, "evictions", 0)

    def get(self, text: str) -> Optional[SentimentResult]:
        """Get the cached result for text, refreshing its recency"""
        with self._lock:
            result = self._entries.get(text)
            if result is None:
                self.cache_misses += 1
            else:
                self.cache_hits += 1

        CACHE_ACCESS_TOTAL.labels(
            cache_name=self.name, result="miss" if result is None else "hit"
        ).inc()
        return result

    def put(self, text: str, result: SentimentResult) -> None:
        with self._lock:
            self._entries[text] = result

    def clear(self) -> None:
        with self._lock:
            # A fresh store, so clearing is not counted as eviction
            self._evictions_before_clear = self.evictions
            self._entries = self._new_store()
        logger.debug("Result cache cleared", cache_name=self.name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, text: str) -> bool:
        with self._lock:
            return text in self._entries

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics"""
        with self._lock:
            total_requests = self.cache_hits + self.cache_misses
            hit_rate = self.cache_hits / total_requests if total_requests > 0 else 0
            return {
                "cache_size": len(self._entries),
                "max_entries": self.max_entries,
                "cache_hits": self.cache_hits,
                "cache_misses": self.cache_misses,
                "evictions": self.evictions,
                "hit_rate": hit_rate,
            }
