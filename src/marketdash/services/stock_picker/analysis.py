"""Caching, retry and fallback coordination for AI stock analysis."""

import asyncio
import random
import time
import uuid
from dataclasses import replace
from typing import Awaitable, Callable, Dict, FrozenSet, List, Optional, Sequence

from ...config.logging import get_logger, log_performance
from ...config.settings import Settings, get_settings
from .cache import AnalysisCache
from .fallback import build_fallback_analysis, fill_missing_analyses
from .models import AnalysisResult, ScoredStock
from .provider import AnalysisProvider

logger = get_logger(__name__)


class AnalysisCoordinator:
    """
    Obtains analysis text for scored stocks without ever failing the caller.

    Results come from the provider when possible, from the cache when fresh or
    acceptably stale, and are synthesized locally as a last resort. The cache,
    the consecutive-error counter, the per-key debounce timestamps and the
    in-flight request map all belong to this instance.
    """

    def __init__(
        self,
        provider: AnalysisProvider,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.provider = provider
        self.settings = settings or get_settings()
        self.logger = logger.bind(component="analysis_coordinator")

        self._clock = clock
        self._sleep = sleep
        self._rng = rng or random.Random()

        self.cache = AnalysisCache(
            max_tickers=self.settings.analysis_max_stocks,
            bucket_seconds=self.settings.analysis_cache_bucket_minutes * 60,
        )
        self._last_invoked: Dict[str, float] = {}
        self._in_flight: Dict[str, asyncio.Future] = {}
        self._generation = 0
        self._consecutive_errors = 0
        self._last_error_at: Optional[float] = None

    @property
    def consecutive_errors(self) -> int:
        return self._consecutive_errors

    async def get_analysis(self, stocks: Sequence[ScoredStock]) -> AnalysisResult:
        """
        Get analysis for a ranked list of scored stocks.

        Args:
            stocks: Scored stocks, best first

        Returns:
            AnalysisResult; ``from_fallback`` and ``error`` describe any
            degradation. Never raises.
        """
        stocks = list(stocks)
        if not stocks:
            return AnalysisResult(
                stock_analyses={},
                market_insight="No stocks to analyze.",
                from_fallback=True,
            )

        try:
            return await self._get_analysis(stocks)
        except Exception as e:
            self.logger.error(
                "Unexpected error during stock analysis", error=str(e), exc_info=True
            )
            return build_fallback_analysis(
                stocks, reason="An error occurred during AI analysis"
            )

    def clear_cache(self) -> int:
        """
        Drop all cached results and reset error and debounce state.

        Requests already in flight keep running and new same-key callers join
        them, but their results are no longer written to the cache.
        """
        removed = self.cache.clear()
        self._generation += 1
        self._last_invoked.clear()
        self._consecutive_errors = 0
        self._last_error_at = None
        self.logger.info("Analysis cache cleared", entries_removed=removed)
        return removed

    reset = clear_cache

    async def _get_analysis(self, stocks: List[ScoredStock]) -> AnalysisResult:
        settings = self.settings
        now = self._clock()
        key = self.cache.make_key(stocks, now)
        tickers = self.cache.tickers_for(stocks)
        entry = self.cache.get(key)

        last_invoked = self._last_invoked.get(key)
        self._record_invocation(key, now)
        if (
            entry is not None
            and last_invoked is not None
            and now - last_invoked < settings.analysis_debounce_seconds
        ):
            self.logger.debug("Debounced analysis request", key=key)
            return entry.result

        if not settings.use_ai_stock_analysis:
            self.logger.info("AI stock analysis is disabled, using fallback")
            result = build_fallback_analysis(stocks, reason="AI analysis is disabled")
            self.cache.put(key, result, tickers, now, stale=True)
            return result

        ttl_seconds = settings.analysis_cache_ttl_minutes * 60
        if entry is not None and not entry.stale and entry.age(now) <= ttl_seconds:
            self.logger.debug(
                "Using cached analysis", key=key, age_seconds=round(entry.age(now))
            )
            return entry.result

        self.cache.mark_stale(key)

        pending = self._in_flight.get(key)
        if pending is not None:
            self.logger.debug("Joining in-flight analysis request", key=key)
            return await asyncio.shield(pending)

        task = asyncio.ensure_future(
            self._resolve(key, stocks, tickers, self._generation)
        )
        self._in_flight[key] = task
        task.add_done_callback(lambda done: self._forget_in_flight(key, done))
        return await asyncio.shield(task)

    def _record_invocation(self, key: str, now: float) -> None:
        debounce = self.settings.analysis_debounce_seconds
        expired = [k for k, at in self._last_invoked.items() if now - at >= debounce]
        for k in expired:
            del self._last_invoked[k]
        self._last_invoked[key] = now

    def _forget_in_flight(self, key: str, task: asyncio.Future) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _resolve(
        self,
        key: str,
        stocks: List[ScoredStock],
        tickers: FrozenSet[str],
        generation: int,
    ) -> AnalysisResult:
        """Call the provider with retries, then degrade if every attempt fails."""
        settings = self.settings
        payload_stocks = stocks[: settings.analysis_max_stocks]
        max_attempts = settings.analysis_max_attempts
        last_error = "unknown error"

        for attempt in range(1, max_attempts + 1):
            request_id = str(uuid.uuid4())
            started = time.perf_counter()
            try:
                payload = await asyncio.wait_for(
                    self.provider.analyze(payload_stocks, request_id=request_id),
                    timeout=settings.analysis_timeout_seconds,
                )
                result = AnalysisResult.from_payload(payload)
            except asyncio.TimeoutError:
                last_error = (
                    f"Analysis provider timed out after "
                    f"{settings.analysis_timeout_seconds:g}s"
                )
            except Exception as e:
                last_error = str(e) or type(e).__name__
            else:
                log_performance(
                    "analysis_provider_call",
                    (time.perf_counter() - started) * 1000,
                    attempt=attempt,
                    request_id=request_id,
                )
                self._record_success()
                if generation == self._generation:
                    self.cache.put(key, result, tickers, self._clock())
                self.logger.info(
                    "Received AI analysis",
                    key=key,
                    attempt=attempt,
                    analyzed=len(result.stock_analyses),
                )
                return result

            self._record_failure()
            self.logger.warning(
                "Analysis provider attempt failed",
                key=key,
                attempt=attempt,
                max_attempts=max_attempts,
                consecutive_errors=self._consecutive_errors,
                error=last_error,
            )
            if attempt < max_attempts:
                await self._sleep(self._backoff_delay(attempt))

        return self._degraded_result(key, stocks, tickers, last_error, generation)

    def _backoff_delay(self, attempt: int) -> float:
        """Exponential backoff with proportional jitter for a failed attempt."""
        settings = self.settings
        delay = settings.analysis_retry_base_delay * (
            settings.analysis_retry_backoff_factor ** (attempt - 1)
        )
        jitter = settings.analysis_retry_jitter
        return delay * self._rng.uniform(1 - jitter, 1 + jitter)

    def _record_success(self) -> None:
        self._consecutive_errors = 0
        self._last_error_at = None

    def _record_failure(self) -> None:
        now = self._clock()
        decay_seconds = self.settings.analysis_error_decay_minutes * 60
        if self._last_error_at is not None and now - self._last_error_at > decay_seconds:
            self._consecutive_errors = 0
        self._consecutive_errors += 1
        self._last_error_at = now

    def adaptive_stale_window(self) -> float:
        """Seconds of staleness tolerated, growing with recent consecutive errors."""
        settings = self.settings
        ttl_seconds = settings.analysis_cache_ttl_minutes * 60
        failed_rounds = self._consecutive_errors // settings.analysis_max_attempts
        return min(
            ttl_seconds * (1 + failed_rounds), settings.analysis_max_stale_hours * 3600
        )

    def _degraded_result(
        self,
        key: str,
        stocks: List[ScoredStock],
        tickers: FrozenSet[str],
        last_error: str,
        generation: int,
    ) -> AnalysisResult:
        settings = self.settings
        now = self._clock()
        reason = (
            f"AI analysis unavailable after {settings.analysis_max_attempts} "
            f"attempts: {last_error}"
        )

        entry = self.cache.get(key)
        window = self.adaptive_stale_window()
        if (
            entry is not None
            and not entry.result.from_fallback
            and entry.age(now) <= window
        ):
            self.logger.warning(
                "Serving stale analysis", key=key, age_seconds=round(entry.age(now))
            )
            return self._as_degraded(entry.result, stocks, reason)

        match = self.cache.best_partial_match(
            tickers,
            now,
            max_age_seconds=settings.analysis_extended_ttl_minutes * 60,
            min_overlap=settings.analysis_partial_match_min_overlap,
            exclude_key=key,
        )
        if match is not None:
            self.logger.warning(
                "Serving partially matching cached analysis",
                key=key,
                overlap=len(tickers & match.tickers),
            )
            return self._as_degraded(match.result, stocks, reason)

        self.logger.warning("Synthesizing fallback analysis", key=key, error=last_error)
        result = build_fallback_analysis(stocks, reason=reason)
        if generation == self._generation:
            self.cache.put(key, result, tickers, now, stale=True)
        return result

    @staticmethod
    def _as_degraded(
        result: AnalysisResult, stocks: List[ScoredStock], reason: str
    ) -> AnalysisResult:
        """Copy a cached result for the requested stocks, flagged as a fallback."""
        wanted = {stock.ticker for stock in stocks}
        degraded = replace(
            result,
            stock_analyses={
                ticker: text
                for ticker, text in result.stock_analyses.items()
                if ticker in wanted
            },
            from_fallback=True,
            error=reason,
        )
        return fill_missing_analyses(degraded, stocks)
