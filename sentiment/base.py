"""
Base Sentiment Source - Abstract interface for all broker fetchers.

A fetcher turns a symbol into one SentimentReading or a FetchFailure.
It enforces its own timeout and never raises to the caller.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

from .exceptions import (
    FetchTimeoutError,
    ParseError,
    SentimentSourceError,
)
from .models import (
    FetchFailure,
    FetchResult,
    FetchStrategy,
    FetchSuccess,
    SentimentReading,
    SourceHealth,
    SourceMetadata,
    SourceStatus,
    utc_now,
)


logger = logging.getLogger(__name__)


class BaseSentimentSource(ABC):
    """
    Abstract base class for positioning sources.

    DESIGN PRINCIPLES:
    1. NEVER raise - every failure becomes a FetchFailure
    2. BOUNDED - each fetch is limited by the source's own timeout
    3. ISOLATED - no state shared with other sources

    Subclasses implement:
    - metadata - source metadata property
    - _fetch_raw() - retrieve raw positioning data for a symbol
    - _normalize() - convert raw data to a SentimentReading
    """

    DEFAULT_TIMEOUT = 15.0
    UNAVAILABLE_AFTER_FAILURES = 3
    PERCENTAGE_SUM_TOLERANCE = 1.0

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout or self.DEFAULT_TIMEOUT

        self._health = SourceHealth(
            status=SourceStatus.UNKNOWN,
            last_check=utc_now(),
        )
        self._stats = {
            "total_requests": 0,
            "successful_fetches": 0,
            "errors": 0,
            "timeouts": 0,
        }

    @property
    @abstractmethod
    def metadata(self) -> SourceMetadata:
        """Return source metadata."""

    @abstractmethod
    async def _fetch_raw(self, symbol: str) -> dict[str, Any]:
        """
        Fetch raw positioning data for a symbol.

        Should raise SentimentSourceError subclasses on failure.
        """

    @abstractmethod
    def _normalize(self, raw_data: dict[str, Any], symbol: str) -> SentimentReading:
        """
        Normalize raw data to a SentimentReading.

        Should raise ParseError if the data cannot be used.
        """

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def strategy(self) -> FetchStrategy:
        return self.metadata.strategy

    # ─────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────

    async def fetch(self, symbol: str) -> FetchResult:
        """
        Fetch one normalized reading.

        NEVER raises - returns FetchFailure on any error.
        """
        self._stats["total_requests"] += 1
        started = time.monotonic()
        tag = f"[{self.name}/{self.strategy.value}]"

        try:
            raw = await asyncio.wait_for(
                self._fetch_raw(symbol),
                timeout=self.timeout,
            )
            reading = self._normalize(raw, symbol)
        except asyncio.TimeoutError:
            self._stats["timeouts"] += 1
            error = FetchTimeoutError(
                f"Timed out after {self.timeout}s",
                source_name=self.name,
                timeout_seconds=self.timeout,
                url=self.metadata.base_url or None,
            )
            logger.warning(f"{tag} Timeout fetching {symbol}: {error}")
            return self._failure(error)
        except asyncio.CancelledError:
            raise
        except SentimentSourceError as e:
            logger.warning(f"{tag} Fetch failed for {symbol}: {e}")
            return self._failure(e)
        except Exception as e:
            logger.error(f"{tag} Unexpected error for {symbol}: {e}")
            return self._failure(e)

        if not isinstance(reading, SentimentReading):
            error = ParseError(
                "Normalization produced no reading",
                source_name=self.name,
            )
            logger.warning(f"{tag} {error}")
            return self._failure(error)

        latency = (time.monotonic() - started) * 1000
        self._stats["successful_fetches"] += 1
        self._health.status = SourceStatus.HEALTHY
        self._health.latency_ms = latency
        self._health.consecutive_failures = 0
        self._health.last_check = utc_now()

        logger.info(
            f"{tag} {symbol}: long={reading.long_percentage} "
            f"short={reading.short_percentage} ({latency:.0f}ms)"
        )
        return FetchSuccess(reading=reading)

    async def get_health(self) -> SourceHealth:
        """Get current health status."""
        self._health.last_check = utc_now()
        return self._health

    def get_stats(self) -> dict[str, Any]:
        """Get source statistics."""
        total = self._stats["total_requests"]
        error_rate = (
            self._stats["errors"] / total * 100
            if total > 0 else 0
        )
        return {
            **self._stats,
            "error_rate_pct": round(error_rate, 2),
            "source_name": self.name,
            "strategy": self.strategy.value,
        }

    async def close(self) -> None:
        """Cleanup resources. Override if needed."""
        pass

    # ─────────────────────────────────────────────────────────────
    # Internal methods
    # ─────────────────────────────────────────────────────────────

    def _build_reading(
        self,
        symbol: str,
        long_percentage: Optional[float],
        short_percentage: Optional[float] = None,
        **extra: Any,
    ) -> SentimentReading:
        """
        Build a reading from scraped percentages.

        A missing side is derived as the complement of the other. When the
        source reports both sides they are kept as reported, even if they do
        not sum to 100.
        """
        if long_percentage is None and short_percentage is None:
            raise ParseError(
                f"No percentages parsed for {symbol}",
                source_name=self.name,
            )

        if short_percentage is None:
            return SentimentReading.from_long_percentage(
                symbol=symbol,
                source=self.name,
                long_percentage=long_percentage,
                strategy=self.strategy,
                **extra,
            )
        if long_percentage is None:
            long_percentage = max(0.0, min(100.0, 100.0 - short_percentage))

        timestamp = extra.pop("timestamp", None) or utc_now()
        total = long_percentage + short_percentage
        if abs(total - 100.0) > self.PERCENTAGE_SUM_TOLERANCE:
            logger.warning(
                f"[{self.name}] {symbol}: long {long_percentage} + short "
                f"{short_percentage} = {total}, keeping reported values"
            )

        return SentimentReading(
            symbol=symbol,
            source=self.name,
            long_percentage=long_percentage,
            short_percentage=short_percentage,
            timestamp=timestamp,
            strategy=self.strategy,
            **extra,
        )

    def _failure(self, error: Exception) -> FetchFailure:
        """Record a failure in health/stats and wrap it."""
        now = utc_now()
        self._stats["errors"] += 1
        self._health.error_count += 1
        self._health.consecutive_failures += 1
        self._health.last_error = str(error)
        self._health.last_error_time = now
        self._health.last_check = now

        if self._health.consecutive_failures >= self.UNAVAILABLE_AFTER_FAILURES:
            self._health.status = SourceStatus.UNAVAILABLE
        else:
            self._health.status = SourceStatus.DEGRADED

        return FetchFailure(
            source=self.name,
            strategy=self.strategy,
            error=error,
        )
