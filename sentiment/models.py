"""
Sentiment Data Models - Normalized retail positioning structures.

A reading is one long/short snapshot for a symbol from one broker source.
Readings are immutable values: fetchers and the fallback generator create
them, the gateway stores them, nothing mutates them afterwards.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _clamp_percentage(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


class FetchStrategy(Enum):
    """
    How a reading was obtained.

    Ordered by fidelity: a headless page load beats a simple HTTP scrape,
    which beats a synthetic placeholder.
    """
    HEADLESS = "headless"
    SIMPLE_HTTP = "simple_http"
    SYNTHETIC = "synthetic"

    @property
    def precedence(self) -> int:
        return _STRATEGY_PRECEDENCE[self]

    @property
    def is_real(self) -> bool:
        return self is not FetchStrategy.SYNTHETIC


_STRATEGY_PRECEDENCE: dict[FetchStrategy, int] = {
    FetchStrategy.HEADLESS: 3,
    FetchStrategy.SIMPLE_HTTP: 2,
    FetchStrategy.SYNTHETIC: 1,
}


class SourceStatus(Enum):
    """Health status of a sentiment source."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SentimentReading:
    """
    One normalized positioning snapshot.

    long_percentage / short_percentage: 0.0 to 100.0
    volume: traded volume in lots (persisted scaled by 100)
    """
    symbol: str
    source: str
    long_percentage: float
    short_percentage: float
    timestamp: datetime
    volume: Optional[float] = None
    long_positions: Optional[int] = None
    short_positions: Optional[int] = None
    strategy: FetchStrategy = FetchStrategy.SIMPLE_HTTP

    def __post_init__(self) -> None:
        """Clamp percentages into range."""
        object.__setattr__(
            self, "long_percentage", _clamp_percentage(self.long_percentage)
        )
        object.__setattr__(
            self, "short_percentage", _clamp_percentage(self.short_percentage)
        )

    @classmethod
    def from_long_percentage(
        cls,
        symbol: str,
        source: str,
        long_percentage: float,
        strategy: FetchStrategy,
        timestamp: Optional[datetime] = None,
        **extra: Any,
    ) -> "SentimentReading":
        """Build a reading from a single percentage; short is the complement."""
        long_pct = _clamp_percentage(long_percentage)
        return cls(
            symbol=symbol,
            source=source,
            long_percentage=long_pct,
            short_percentage=100.0 - long_pct,
            timestamp=timestamp or utc_now(),
            strategy=strategy,
            **extra,
        )

    @property
    def is_synthetic(self) -> bool:
        return self.strategy is FetchStrategy.SYNTHETIC

    @property
    def percentage_sum(self) -> float:
        return self.long_percentage + self.short_percentage

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "symbol": self.symbol,
            "source": self.source,
            "long_percentage": self.long_percentage,
            "short_percentage": self.short_percentage,
            "volume": self.volume,
            "long_positions": self.long_positions,
            "short_positions": self.short_positions,
            "timestamp": self.timestamp.isoformat(),
            "strategy": self.strategy.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SentimentReading":
        """Create from dictionary."""
        timestamp = data["timestamp"]
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)
        return cls(
            symbol=data["symbol"],
            source=data["source"],
            long_percentage=float(data["long_percentage"]),
            short_percentage=float(data["short_percentage"]),
            timestamp=timestamp,
            volume=data.get("volume"),
            long_positions=data.get("long_positions"),
            short_positions=data.get("short_positions"),
            strategy=FetchStrategy(data.get("strategy", FetchStrategy.SIMPLE_HTTP.value)),
        )


@dataclass(frozen=True)
class ConsensusResult:
    """
    Consensus across per-source readings.

    Exposed to users as the "weighted" sentiment, but it is a plain
    unweighted mean of the source percentages.
    """
    long_percentage: float = 50.0
    short_percentage: float = 50.0
    source_count: int = 0

    @property
    def has_data(self) -> bool:
        return self.source_count > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "long_percentage": self.long_percentage,
            "short_percentage": self.short_percentage,
            "source_count": self.source_count,
        }


# ─────────────────────────────────────────────────────────────
# Fetch results
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FetchSuccess:
    """A fetcher produced a reading."""
    reading: SentimentReading

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class FetchFailure:
    """A fetcher failed; the error is kept for logging and health."""
    source: str
    strategy: FetchStrategy
    error: Exception

    @property
    def ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return str(self.error) or self.error.__class__.__name__


FetchResult = Union[FetchSuccess, FetchFailure]


@dataclass(frozen=True)
class SourceOutcome:
    """Outcome of one source within a refresh cycle."""
    source: str
    strategy: FetchStrategy
    success: bool
    attempts: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "strategy": self.strategy.value,
            "success": self.success,
            "attempts": self.attempts,
            "error": self.error,
        }


# ─────────────────────────────────────────────────────────────
# Operation results
# ─────────────────────────────────────────────────────────────

@dataclass
class RefreshResult:
    """Result of a refresh: merged per-source set plus consensus."""
    symbol: str
    sentiments: list[SentimentReading]
    weighted: ConsensusResult
    timestamp: datetime
    outcomes: list[SourceOutcome] = field(default_factory=list)

    @property
    def real_sources(self) -> list[str]:
        return [s.source for s in self.sentiments if not s.is_synthetic]

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "sentiments": [s.to_dict() for s in self.sentiments],
            "weighted": self.weighted.to_dict(),
            "timestamp": self.timestamp.isoformat(),
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


@dataclass
class LatestSentiment:
    """Most recent persisted reading per source, plus consensus."""
    symbol: str
    sentiments: list[SentimentReading]
    weighted: ConsensusResult
    last_update: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "sentiments": [s.to_dict() for s in self.sentiments],
            "weighted": self.weighted.to_dict(),
            "last_update": self.last_update.isoformat(),
        }


@dataclass
class SymbolSummary:
    """Compact consensus view for one symbol."""
    symbol: str
    weighted: ConsensusResult
    sources: int
    last_update: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "weighted": self.weighted.to_dict(),
            "sources": self.sources,
            "last_update": self.last_update.isoformat(),
        }


# ─────────────────────────────────────────────────────────────
# Source metadata and health
# ─────────────────────────────────────────────────────────────

@dataclass
class SourceMetadata:
    """Metadata about one fetcher."""
    name: str
    display_name: str
    strategy: FetchStrategy
    base_url: str = ""
    timeout_seconds: float = 15.0
    reports_positions: bool = False
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "display_name": self.display_name,
            "strategy": self.strategy.value,
            "base_url": self.base_url,
            "timeout_seconds": self.timeout_seconds,
            "reports_positions": self.reports_positions,
            "tags": self.tags,
        }


@dataclass
class SourceHealth:
    """Health status of a fetcher."""
    status: SourceStatus
    last_check: datetime
    latency_ms: Optional[float] = None
    error_count: int = 0
    last_error: Optional[str] = None
    last_error_time: Optional[datetime] = None
    consecutive_failures: int = 0

    def is_healthy(self) -> bool:
        return self.status == SourceStatus.HEALTHY

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "last_check": self.last_check.isoformat(),
            "latency_ms": self.latency_ms,
            "error_count": self.error_count,
            "last_error": self.last_error,
            "last_error_time": (
                self.last_error_time.isoformat() if self.last_error_time else None
            ),
            "consecutive_failures": self.consecutive_failures,
        }
