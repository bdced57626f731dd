"""
Sentiment Aggregator - Multi-source fetch, reconciliation and read path.

The aggregator:
1. Fans out one task per configured source and waits for all of them
2. Generates a fallback reading for every source, unconditionally
3. Merges by source, the highest-precedence strategy wins
4. Persists the merged set and computes consensus

A source failure only ever degrades that source to its fallback reading.
Persistence failures propagate.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from .config import SentimentConfig
from .consensus import ConsensusCalculator
from .exceptions import (
    ConfigurationError,
    FetchTimeoutError,
    PersistenceError,
)
from .fallback import FallbackGenerator
from .gateway import PersistenceGateway
from .models import (
    FetchFailure,
    FetchStrategy,
    FetchSuccess,
    LatestSentiment,
    RefreshResult,
    SentimentReading,
    SourceHealth,
    SourceOutcome,
    SymbolSummary,
    utc_now,
)
from .registry import SourceDescriptor, build_sources


logger = logging.getLogger(__name__)


def merge_readings(
    readings: Iterable[SentimentReading],
    source_order: Sequence[str],
) -> list[SentimentReading]:
    """
    Keep one reading per source, highest strategy precedence first.

    Ties keep the earlier reading. Sources not in source_order are
    dropped; the result follows source_order.
    """
    allowed = set(source_order)
    best: dict[str, SentimentReading] = {}
    for reading in readings:
        if reading.source not in allowed:
            continue
        current = best.get(reading.source)
        if current is None or reading.strategy.precedence > current.strategy.precedence:
            best[reading.source] = reading
    return [best[name] for name in source_order if name in best]


def latest_per_source(readings: Iterable[SentimentReading]) -> list[SentimentReading]:
    """First reading per source in iteration order (input is newest first)."""
    seen: dict[str, SentimentReading] = {}
    for reading in readings:
        if reading.source not in seen:
            seen[reading.source] = reading
    return list(seen.values())


@dataclass
class _SourceAttempt:
    """Everything one source produced during a refresh."""
    source: str
    reading: Optional[SentimentReading] = None
    attempts: int = 0
    failure: Optional[FetchFailure] = None


class SentimentAggregator:
    """
    Orchestrates fetchers, fallback, persistence and consensus.

    Usage:
        aggregator = SentimentAggregator(
            sources=build_sources(config),
            gateway=SqlSentimentGateway(),
        )
        result = await aggregator.refresh("XAUUSD")
        latest = await aggregator.get_latest("XAUUSD")
    """

    DEFAULT_LATEST_LIMIT = 20

    def __init__(
        self,
        sources: Sequence[SourceDescriptor],
        gateway: PersistenceGateway,
        fallback: Optional[FallbackGenerator] = None,
        calculator: Optional[ConsensusCalculator] = None,
        refresh_deadline: Optional[float] = None,
        latest_limit: int = DEFAULT_LATEST_LIMIT,
    ) -> None:
        names = [s.name for s in sources]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate source names: {', '.join(duplicates)}")
        if latest_limit < 1:
            raise ConfigurationError("latest_limit must be >= 1")

        self._sources = list(sources)
        self._gateway = gateway
        self._fallback = fallback or FallbackGenerator()
        self._calculator = calculator or ConsensusCalculator()
        self._refresh_deadline = refresh_deadline
        self._latest_limit = latest_limit

        if not self._sources:
            logger.warning("No sentiment sources configured")

    @classmethod
    def from_config(
        cls,
        config: SentimentConfig,
        gateway: PersistenceGateway,
    ) -> "SentimentAggregator":
        """Build fetchers, fallback and limits from configuration."""
        return cls(
            sources=build_sources(config),
            gateway=gateway,
            fallback=FallbackGenerator.from_config(config.fallback),
            refresh_deadline=config.refresh_deadline_seconds,
            latest_limit=config.latest_limit,
        )

    @property
    def source_names(self) -> list[str]:
        return [s.name for s in self._sources]

    # ─────────────────────────────────────────────────────────────
    # Refresh (write path)
    # ─────────────────────────────────────────────────────────────

    async def refresh(self, symbol: str) -> RefreshResult:
        """
        Fetch, reconcile, persist and return one reading per source.

        Raises:
            PersistenceError: if any merged reading cannot be stored
        """
        symbol = _normalize_symbol(symbol)
        started = utc_now()

        if not self._sources:
            return RefreshResult(
                symbol=symbol,
                sentiments=[],
                weighted=self._calculator.aggregate([]),
                timestamp=started,
            )

        logger.info(f"Refreshing sentiment for {symbol} from {len(self._sources)} sources")

        attempts = await self._fetch_all(symbol)
        real = [a.reading for a in attempts if a.reading is not None]
        fallback = self._fallback.generate_all(symbol, self.source_names)

        sentiments = merge_readings([*real, *fallback], self.source_names)
        outcomes = [self._outcome(a, sentiments) for a in attempts]

        await self._persist(sentiments)

        weighted = self._calculator.aggregate(sentiments)
        logger.info(
            f"Sentiment for {symbol}: {len(real)}/{len(sentiments)} real sources, "
            f"long={weighted.long_percentage} short={weighted.short_percentage}"
        )

        return RefreshResult(
            symbol=symbol,
            sentiments=sentiments,
            weighted=weighted,
            timestamp=utc_now(),
            outcomes=outcomes,
        )

    async def _fetch_all(self, symbol: str) -> list[_SourceAttempt]:
        """One task per source; join-all, optionally bounded by the deadline."""
        tasks = [
            asyncio.create_task(
                self._fetch_source(descriptor, symbol),
                name=f"sentiment:{descriptor.name}:{symbol}",
            )
            for descriptor in self._sources
        ]

        if self._refresh_deadline is not None:
            _, pending = await asyncio.wait(tasks, timeout=self._refresh_deadline)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        results = await asyncio.gather(*tasks, return_exceptions=True)

        attempts: list[_SourceAttempt] = []
        for descriptor, result in zip(self._sources, results):
            if isinstance(result, _SourceAttempt):
                attempts.append(result)
                continue

            if isinstance(result, asyncio.CancelledError):
                error: Exception = FetchTimeoutError(
                    f"Refresh deadline of {self._refresh_deadline}s elapsed",
                    source_name=descriptor.name,
                    timeout_seconds=self._refresh_deadline,
                )
                logger.warning(f"[{descriptor.name}] Cancelled at refresh deadline")
            else:
                error = result
                logger.error(f"[{descriptor.name}] Fetch task crashed: {result}")

            strategy = (
                descriptor.fetchers[0].strategy
                if descriptor.fetchers else FetchStrategy.SYNTHETIC
            )
            attempts.append(_SourceAttempt(
                source=descriptor.name,
                attempts=len(descriptor.fetchers),
                failure=FetchFailure(
                    source=descriptor.name,
                    strategy=strategy,
                    error=error,
                ),
            ))

        return attempts

    async def _fetch_source(
        self,
        descriptor: SourceDescriptor,
        symbol: str,
    ) -> _SourceAttempt:
        """Try the source's fetchers in precedence order until one succeeds."""
        attempt = _SourceAttempt(source=descriptor.name)

        for fetcher in descriptor.fetchers:
            attempt.attempts += 1
            result = await fetcher.fetch(symbol)
            if isinstance(result, FetchSuccess):
                attempt.reading = result.reading
                attempt.failure = None
                return attempt
            attempt.failure = result
            logger.info(
                f"[{descriptor.name}] {fetcher.strategy.value} failed for {symbol}: "
                f"{result.message}"
            )

        if descriptor.fetchers:
            logger.warning(f"[{descriptor.name}] No real data for {symbol}, using fallback")
        return attempt

    def _outcome(
        self,
        attempt: _SourceAttempt,
        sentiments: list[SentimentReading],
    ) -> SourceOutcome:
        chosen = next((s for s in sentiments if s.source == attempt.source), None)
        return SourceOutcome(
            source=attempt.source,
            strategy=chosen.strategy if chosen else FetchStrategy.SYNTHETIC,
            success=attempt.reading is not None,
            attempts=attempt.attempts,
            error=attempt.failure.message if attempt.failure else None,
        )

    async def _persist(self, readings: list[SentimentReading]) -> None:
        """Store the whole merged set in one batch; nothing is kept on failure."""
        try:
            await asyncio.to_thread(self._gateway.save_many, readings)
        except PersistenceError as e:
            logger.error(f"Failed to persist sentiment readings: {e}")
            raise

    # ─────────────────────────────────────────────────────────────
    # Read path
    # ─────────────────────────────────────────────────────────────

    async def get_latest(self, symbol: str) -> LatestSentiment:
        """
        Most recent stored reading per source plus consensus.

        No fetching. Empty history gives an empty list and the neutral
        consensus.

        Raises:
            PersistenceError: if the store cannot be queried
        """
        symbol = _normalize_symbol(symbol)
        recent = await asyncio.to_thread(
            self._gateway.query_recent, symbol, self._latest_limit
        )
        latest = latest_per_source(recent)

        return LatestSentiment(
            symbol=symbol,
            sentiments=latest,
            weighted=self._calculator.aggregate(latest),
            last_update=latest[0].timestamp if latest else utc_now(),
        )

    async def get_all_symbols(self) -> list[str]:
        """Every symbol with at least one stored reading."""
        return await asyncio.to_thread(self._gateway.distinct_symbols)

    async def get_multiple(self, symbols: Sequence[str]) -> list[SymbolSummary]:
        """
        Latest consensus for several symbols, in input order.

        Every symbol is validated before any query runs. The first query
        error is raised after all queries have finished.
        """
        normalized = [_normalize_symbol(s) for s in symbols]
        results = await asyncio.gather(
            *(self.get_latest(s) for s in normalized),
            return_exceptions=True,
        )

        latest: list[LatestSentiment] = []
        for symbol, result in zip(normalized, results):
            if isinstance(result, BaseException):
                logger.error(f"Failed to read sentiment for {symbol}: {result}")
                raise result
            latest.append(result)

        return [
            SymbolSummary(
                symbol=item.symbol,
                weighted=item.weighted,
                sources=len(item.sentiments),
                last_update=item.last_update,
            )
            for item in latest
        ]

    # ─────────────────────────────────────────────────────────────
    # Health and lifecycle
    # ─────────────────────────────────────────────────────────────

    async def get_health(self) -> dict[str, SourceHealth]:
        """Health of every fetcher, keyed "<source>/<strategy>"."""
        health: dict[str, SourceHealth] = {}
        for descriptor in self._sources:
            for fetcher in descriptor.fetchers:
                key = f"{descriptor.name}/{fetcher.strategy.value}"
                health[key] = await fetcher.get_health()
        return health

    async def close(self) -> None:
        """Close all fetchers."""
        for descriptor in self._sources:
            for fetcher in descriptor.fetchers:
                try:
                    await fetcher.close()
                except Exception as e:
                    logger.warning(
                        f"[{descriptor.name}/{fetcher.strategy.value}] Close failed: {e}"
                    )


def _normalize_symbol(symbol: str) -> str:
    cleaned = (symbol or "").strip().upper()
    if not cleaned:
        raise ValueError("symbol must not be empty")
    return cleaned
