"""In-memory cache of analysis results keyed by ticker set and time window."""

from typing import Dict, FrozenSet, Iterable, Optional, Sequence

from ...config.logging import get_logger
from .models import AnalysisResult, CacheEntry, ScoredStock

logger = get_logger(__name__)


class AnalysisCache:
    """
    Session-scoped store of analysis results.

    Keys combine the sorted tickers of the leading stocks with a coarse time
    bucket, so identical stock sets requested within one window map to the
    same entry. Entries are never evicted except by ``clear()``.
    """

    def __init__(self, max_tickers: int = 10, bucket_seconds: float = 15 * 60):
        self.max_tickers = max_tickers
        self.bucket_seconds = bucket_seconds
        self._entries: Dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def tickers_for(self, stocks: Sequence[ScoredStock]) -> FrozenSet[str]:
        """Tickers of the leading stocks that take part in the key."""
        return frozenset(stock.ticker for stock in stocks[: self.max_tickers])

    def make_key(self, stocks: Sequence[ScoredStock], now: float) -> str:
        """Build the cache key for a stock set at a point in time."""
        tickers = ",".join(sorted(self.tickers_for(stocks)))
        bucket = int(now // self.bucket_seconds)
        return f"{tickers}|{bucket}"

    def get(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def put(
        self,
        key: str,
        result: AnalysisResult,
        tickers: Iterable[str],
        now: float,
        stale: bool = False,
    ) -> CacheEntry:
        """Store a result under a key, replacing any previous entry."""
        entry = CacheEntry(
            result=result, timestamp=now, tickers=frozenset(tickers), stale=stale
        )
        self._entries[key] = entry
        logger.debug("Cached analysis", key=key, stale=stale, size=len(self._entries))
        return entry

    def mark_stale(self, key: str) -> Optional[CacheEntry]:
        """Flag an entry as stale, keeping it as an emergency fallback."""
        entry = self._entries.get(key)
        if entry is not None and not entry.stale:
            entry.stale = True
            logger.debug("Marked analysis cache entry stale", key=key)
        return entry

    def best_partial_match(
        self,
        tickers: Iterable[str],
        now: float,
        max_age_seconds: float,
        min_overlap: int = 3,
        exclude_key: Optional[str] = None,
    ) -> Optional[CacheEntry]:
        """
        Find the provider-sourced entry sharing the most tickers with a set.

        Args:
            tickers: Requested tickers
            now: Current time in epoch seconds
            max_age_seconds: Oldest acceptable entry age
            min_overlap: Minimum number of shared tickers
            exclude_key: Key to skip, usually the requested key itself

        Returns:
            The entry with the highest overlap (newest on ties), or None
        """
        wanted = frozenset(tickers)
        best: Optional[CacheEntry] = None
        best_overlap = 0

        for key, entry in self._entries.items():
            if key == exclude_key or entry.result.from_fallback:
                continue
            if entry.age(now) > max_age_seconds:
                continue

            overlap = len(wanted & entry.tickers)
            if overlap < min_overlap:
                continue
            if overlap > best_overlap or (
                overlap == best_overlap
                and best is not None
                and entry.timestamp > best.timestamp
            ):
                best = entry
                best_overlap = overlap

        return best

    def clear(self) -> int:
        """Remove every entry and return how many were removed."""
        removed = len(self._entries)
        self._entries.clear()
        return removed
