"""
Source Registry - Explicit, ordered source configuration.

A SourceDescriptor groups every fetcher for one logical source. Fetchers
are tried in strategy precedence order (headless before simple HTTP); a
source with no fetchers is served by the fallback generator alone.

Descriptors are built from configuration and handed to the aggregator;
there is no module-level source list.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from .base import BaseSentimentSource
from .config import SentimentConfig, SourceConfig
from .exceptions import ConfigurationError
from .models import FetchStrategy
from .providers import (
    DukascopyHeadlessSource,
    DukascopySource,
    FxssiHeadlessSource,
    FxssiSource,
    MyFxBookHeadlessSource,
    MyFxBookSource,
)


logger = logging.getLogger(__name__)


FetcherFactory = Callable[[SentimentConfig], BaseSentimentSource]


PROVIDER_FACTORIES: dict[tuple[str, FetchStrategy], FetcherFactory] = {
    ("MyFxBook", FetchStrategy.HEADLESS): lambda c: MyFxBookHeadlessSource(
        timeout=c.headless_timeout_seconds, user_agent=c.user_agent,
    ),
    ("MyFxBook", FetchStrategy.SIMPLE_HTTP): lambda c: MyFxBookSource(
        timeout=c.http_timeout_seconds, user_agent=c.user_agent,
    ),
    ("Dukascopy", FetchStrategy.HEADLESS): lambda c: DukascopyHeadlessSource(
        timeout=c.headless_timeout_seconds, user_agent=c.user_agent,
    ),
    ("Dukascopy", FetchStrategy.SIMPLE_HTTP): lambda c: DukascopySource(
        timeout=c.http_timeout_seconds, user_agent=c.user_agent,
    ),
    ("FXSSI", FetchStrategy.HEADLESS): lambda c: FxssiHeadlessSource(
        timeout=c.headless_timeout_seconds, user_agent=c.user_agent,
    ),
    ("FXSSI", FetchStrategy.SIMPLE_HTTP): lambda c: FxssiSource(
        timeout=c.http_timeout_seconds, user_agent=c.user_agent,
    ),
}


@dataclass
class SourceDescriptor:
    """One logical source and the fetchers that can serve it."""
    name: str
    fetchers: list[BaseSentimentSource] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigurationError("Source name must not be empty")
        for fetcher in self.fetchers:
            if fetcher.name != self.name:
                raise ConfigurationError(
                    f"Fetcher {fetcher.name} registered under source {self.name}"
                )
        strategies = [f.strategy for f in self.fetchers]
        if FetchStrategy.SYNTHETIC in strategies:
            raise ConfigurationError(
                f"{self.name}: synthetic readings come from the fallback generator"
            )
        if len(set(strategies)) != len(strategies):
            raise ConfigurationError(f"{self.name}: duplicate fetch strategy")
        self.fetchers = sorted(
            self.fetchers,
            key=lambda f: f.strategy.precedence,
            reverse=True,
        )

    @property
    def strategies(self) -> list[FetchStrategy]:
        return [f.strategy for f in self.fetchers]

    @property
    def is_synthetic_only(self) -> bool:
        return not self.fetchers


def build_descriptor(
    source: SourceConfig,
    config: SentimentConfig,
    factories: Optional[dict[tuple[str, FetchStrategy], FetcherFactory]] = None,
) -> SourceDescriptor:
    """Instantiate the fetchers configured for one source."""
    factories = PROVIDER_FACTORIES if factories is None else factories
    fetchers: list[BaseSentimentSource] = []

    for strategy_name in source.strategies:
        try:
            strategy = FetchStrategy(strategy_name)
        except ValueError as e:
            raise ConfigurationError(
                f"{source.name}: unknown fetch strategy {strategy_name!r}"
            ) from e

        if strategy is FetchStrategy.SYNTHETIC:
            continue
        if strategy is FetchStrategy.HEADLESS and not config.headless_enabled:
            logger.info(f"[{source.name}] Headless fetching disabled, skipping")
            continue

        factory = factories.get((source.name, strategy))
        if factory is None:
            raise ConfigurationError(
                f"No {strategy.value} fetcher available for source {source.name}"
            )
        fetchers.append(factory(config))

    return SourceDescriptor(name=source.name, fetchers=fetchers)


def build_sources(
    config: SentimentConfig,
    factories: Optional[dict[tuple[str, FetchStrategy], FetcherFactory]] = None,
) -> list[SourceDescriptor]:
    """Ordered descriptors for every enabled source in config."""
    descriptors = [
        build_descriptor(source, config, factories)
        for source in config.sources
        if source.enabled
    ]
    logger.info(
        f"Configured {len(descriptors)} sentiment sources: "
        f"{', '.join(d.name for d in descriptors) or 'none'}"
    )
    return descriptors
