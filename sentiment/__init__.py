"""
Sentiment Aggregation Layer - Retail FX positioning from broker websites.

This package provides:
- Fetchers for MyFxBook, Dukascopy and FXSSI (headless and simple HTTP)
- Synthetic fallback readings so every source always reports
- Strategy-precedence merge and consensus calculation
- Read path over persisted readings

Usage:
    from sentiment import SentimentAggregator, SentimentConfig, build_sources
    from database import SqlSentimentGateway

    config = SentimentConfig.from_env()
    aggregator = SentimentAggregator(
        sources=build_sources(config),
        gateway=SqlSentimentGateway(),
    )

    result = await aggregator.refresh("XAUUSD")
    print(result.weighted.long_percentage, result.weighted.short_percentage)

Strategy precedence:
- headless: 3 (rendered page)
- simple_http: 2 (plain GET)
- synthetic: 1 (fallback generator)
"""

from .aggregator import SentimentAggregator, latest_per_source, merge_readings
from .base import BaseSentimentSource
from .config import (
    FallbackConfig,
    SentimentConfig,
    SourceConfig,
    get_config,
    set_config,
)
from .consensus import ConsensusCalculator
from .exceptions import (
    ConfigurationError,
    FetchError,
    FetchTimeoutError,
    ParseError,
    PersistenceError,
    SentimentSourceError,
    SymbolNotFoundError,
)
from .fallback import FallbackGenerator
from .gateway import PersistenceGateway
from .models import (
    ConsensusResult,
    FetchFailure,
    FetchResult,
    FetchStrategy,
    FetchSuccess,
    LatestSentiment,
    RefreshResult,
    SentimentReading,
    SourceHealth,
    SourceMetadata,
    SourceOutcome,
    SourceStatus,
    SymbolSummary,
)
from .registry import SourceDescriptor, build_descriptor, build_sources


__all__ = [
    # Aggregation
    "SentimentAggregator",
    "merge_readings",
    "latest_per_source",
    "ConsensusCalculator",
    "FallbackGenerator",
    "PersistenceGateway",
    # Sources
    "BaseSentimentSource",
    "SourceDescriptor",
    "build_descriptor",
    "build_sources",
    # Config
    "SentimentConfig",
    "SourceConfig",
    "FallbackConfig",
    "get_config",
    "set_config",
    # Models
    "SentimentReading",
    "ConsensusResult",
    "FetchStrategy",
    "FetchSuccess",
    "FetchFailure",
    "FetchResult",
    "SourceOutcome",
    "RefreshResult",
    "LatestSentiment",
    "SymbolSummary",
    "SourceMetadata",
    "SourceHealth",
    "SourceStatus",
    # Exceptions
    "SentimentSourceError",
    "FetchError",
    "FetchTimeoutError",
    "ParseError",
    "SymbolNotFoundError",
    "PersistenceError",
    "ConfigurationError",
]
