"""
Fallback Generator - Plausible placeholder readings.

Used so that every configured source always has a reading, even when no
real fetch succeeds. Placeholders have the same shape as real readings:
sources known to report position counts get synthetic counts and volume.
"""

import logging
import math
import random
from typing import Iterable, Optional

from .config import FallbackConfig
from .exceptions import ConfigurationError
from .models import FetchStrategy, SentimentReading, utc_now


logger = logging.getLogger(__name__)


DEFAULT_DETAILED_SOURCES = frozenset({"MyFxBook"})


class FallbackGenerator:
    """
    Synthetic reading generator.

    long_percentage is uniform in long_range (default 40-60), rounded to one
    decimal; short is the complement.
    """

    def __init__(
        self,
        long_range: tuple[float, float] = (40.0, 60.0),
        position_total_range: tuple[int, int] = (20000, 30000),
        volume_range: tuple[float, float] = (30.0, 70.0),
        detailed_sources: Optional[Iterable[str]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        low, high = long_range
        if not 0.0 <= low <= high <= 100.0:
            raise ConfigurationError(
                f"Invalid fallback long range: {long_range}"
            )
        if position_total_range[0] > position_total_range[1] or position_total_range[0] < 0:
            raise ConfigurationError(
                f"Invalid fallback position total range: {position_total_range}"
            )
        if volume_range[0] > volume_range[1] or volume_range[0] < 0:
            raise ConfigurationError(
                f"Invalid fallback volume range: {volume_range}"
            )

        self.long_range = (float(low), float(high))
        self.position_total_range = position_total_range
        self.volume_range = volume_range
        self.detailed_sources = frozenset(
            DEFAULT_DETAILED_SOURCES if detailed_sources is None else detailed_sources
        )
        self._rng = rng or random.Random()

    @classmethod
    def from_config(
        cls,
        config: FallbackConfig,
        rng: Optional[random.Random] = None,
    ) -> "FallbackGenerator":
        return cls(
            long_range=(config.long_min, config.long_max),
            position_total_range=(config.position_total_min, config.position_total_max),
            volume_range=(config.volume_min, config.volume_max),
            detailed_sources=config.detailed_sources,
            rng=rng,
        )

    def generate(self, symbol: str, source: str) -> SentimentReading:
        """Generate one placeholder reading for a source."""
        low, high = self.long_range
        long_pct = round(self._rng.uniform(low, high), 1)
        # keep the rounded value inside the configured bounds
        long_pct = max(low, min(high, long_pct))
        short_pct = round(100.0 - long_pct, 1)

        long_positions: Optional[int] = None
        short_positions: Optional[int] = None
        volume: Optional[float] = None

        if source in self.detailed_sources:
            total = self._rng.randint(*self.position_total_range)
            long_positions = math.floor(total * (long_pct / 100.0))
            short_positions = total - long_positions
            volume = round(self._rng.uniform(*self.volume_range), 2)

        return SentimentReading(
            symbol=symbol,
            source=source,
            long_percentage=long_pct,
            short_percentage=short_pct,
            timestamp=utc_now(),
            volume=volume,
            long_positions=long_positions,
            short_positions=short_positions,
            strategy=FetchStrategy.SYNTHETIC,
        )

    def generate_all(
        self,
        symbol: str,
        sources: Iterable[str],
    ) -> list[SentimentReading]:
        """Generate a placeholder for every source, in the given order."""
        readings = [self.generate(symbol, source) for source in sources]
        logger.debug(f"Generated {len(readings)} fallback readings for {symbol}")
        return readings
