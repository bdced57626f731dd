"""
Shared fixtures for sentiment aggregation tests.

Provides an in-memory persistence gateway and scripted fetchers so the
aggregator can be exercised without network or database access.
"""

import asyncio
import random
from datetime import datetime, timedelta
from typing import Any, Optional

import pytest

from sentiment.base import BaseSentimentSource
from sentiment.exceptions import FetchError, PersistenceError
from sentiment.fallback import FallbackGenerator
from sentiment.gateway import PersistenceGateway
from sentiment.models import (
    FetchStrategy,
    SentimentReading,
    SourceMetadata,
)


# ============================================================
# FAKES
# ============================================================

class ScriptedSource(BaseSentimentSource):
    """
    Fetcher returning a fixed long percentage, or failing.

    error: exception raised from _fetch_raw
    delay: seconds to sleep before answering
    """

    def __init__(
        self,
        name: str,
        strategy: FetchStrategy = FetchStrategy.SIMPLE_HTTP,
        long_percentage: Optional[float] = 55.0,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        timeout: float = 5.0,
    ) -> None:
        super().__init__(timeout)
        self._name = name
        self._strategy = strategy
        self.long_percentage = long_percentage
        self.error = error
        self.delay = delay
        self.calls = 0
        self.closed = False

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=self._name,
            display_name=f"Scripted {self._name}",
            strategy=self._strategy,
        )

    async def _fetch_raw(self, symbol: str) -> dict[str, Any]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return {"long": self.long_percentage}

    def _normalize(self, raw_data: dict[str, Any], symbol: str) -> SentimentReading:
        return self._build_reading(symbol, raw_data["long"])

    async def close(self) -> None:
        self.closed = True


class InMemoryGateway(PersistenceGateway):
    """
    List-backed gateway.

    fail_on_save: every write fails
    fail_on_write: 1-based index of the write that fails within a batch
    """

    def __init__(self) -> None:
        self.readings: list[SentimentReading] = []
        self.fail_on_save = False
        self.fail_on_write: Optional[int] = None
        self.fail_on_query = False

    def _check_write(self, position: int) -> None:
        if self.fail_on_save or position == self.fail_on_write:
            raise PersistenceError("database is down", operation="save")

    def save(self, reading: SentimentReading) -> None:
        self._check_write(1)
        self.readings.append(reading)

    def save_many(self, readings) -> int:
        staged: list[SentimentReading] = []
        for position, reading in enumerate(readings, start=1):
            self._check_write(position)
            staged.append(reading)
        self.readings.extend(staged)
        return len(staged)

    def query_recent(self, symbol: str, limit: int) -> list[SentimentReading]:
        if self.fail_on_query:
            raise PersistenceError("database is down", operation="query_recent")
        matching = [r for r in reversed(self.readings) if r.symbol == symbol]
        matching.sort(key=lambda r: r.timestamp, reverse=True)
        return matching[:limit]

    def distinct_symbols(self) -> list[str]:
        return sorted({r.symbol for r in self.readings})


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def gateway():
    """Empty in-memory gateway."""
    return InMemoryGateway()


@pytest.fixture
def fallback():
    """Deterministic fallback generator."""
    return FallbackGenerator(rng=random.Random(42))


@pytest.fixture
def make_source():
    """Factory for scripted fetchers."""
    return ScriptedSource


@pytest.fixture
def failing_error():
    return FetchError("HTTP 503", source_name="test", status_code=503)


@pytest.fixture
def base_time():
    return datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def make_reading(base_time):
    """Factory for stored readings at base_time + minutes."""
    def _make(
        source: str,
        minutes: int = 0,
        symbol: str = "XAUUSD",
        long_percentage: float = 50.0,
        strategy: FetchStrategy = FetchStrategy.SIMPLE_HTTP,
    ) -> SentimentReading:
        return SentimentReading.from_long_percentage(
            symbol=symbol,
            source=source,
            long_percentage=long_percentage,
            strategy=strategy,
            timestamp=base_time + timedelta(minutes=minutes),
        )
    return _make
