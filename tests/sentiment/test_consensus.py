"""
Tests for consensus calculation and fallback generation.
"""

import math
import random

import pytest

from sentiment.config import FallbackConfig
from sentiment.consensus import ConsensusCalculator, round_one_decimal
from sentiment.exceptions import ConfigurationError
from sentiment.fallback import FallbackGenerator
from sentiment.models import FetchStrategy, SentimentReading


# ============================================================
# CONSENSUS
# ============================================================

class TestConsensusCalculator:

    def test_mean_of_three_sources(self, make_reading):
        readings = [
            make_reading("A", long_percentage=40.0),
            make_reading("B", long_percentage=50.0),
            make_reading("C", long_percentage=60.0),
        ]

        result = ConsensusCalculator().aggregate(readings)

        assert result.long_percentage == 50.0
        assert result.short_percentage == 50.0
        assert result.source_count == 3

    def test_empty_is_neutral(self):
        result = ConsensusCalculator().aggregate([])

        assert result.long_percentage == 50.0
        assert result.short_percentage == 50.0
        assert result.source_count == 0
        assert result.has_data is False

    def test_rounds_to_one_decimal(self, make_reading):
        readings = [
            make_reading("A", long_percentage=33.33),
            make_reading("B", long_percentage=33.33),
            make_reading("C", long_percentage=33.34),
        ]

        result = ConsensusCalculator().aggregate(readings)

        assert result.long_percentage == 33.3
        assert result.short_percentage == 66.7

    def test_sides_averaged_independently(self, base_time):
        reading = SentimentReading(
            symbol="XAUUSD",
            source="A",
            long_percentage=62.0,
            short_percentage=40.0,
            timestamp=base_time,
        )

        result = ConsensusCalculator().aggregate([reading])

        assert result.long_percentage == 62.0
        assert result.short_percentage == 40.0

    @pytest.mark.parametrize("value,expected", [
        (50.25, 50.3),
        (50.35, 50.4),
        (49.95, 50.0),
        (12.04, 12.0),
    ])
    def test_round_half_up(self, value, expected):
        assert round_one_decimal(value) == expected


# ============================================================
# FALLBACK
# ============================================================

class TestFallbackGenerator:

    def test_long_within_range_and_short_complement(self):
        generator = FallbackGenerator(rng=random.Random(7))

        for _ in range(200):
            reading = generator.generate("XAUUSD", "FXSSI")
            assert 40.0 <= reading.long_percentage <= 60.0
            assert reading.long_percentage == round(reading.long_percentage, 1)
            assert reading.long_percentage + reading.short_percentage == pytest.approx(100.0)
            assert reading.strategy is FetchStrategy.SYNTHETIC

    def test_detailed_source_gets_positions_and_volume(self):
        generator = FallbackGenerator(rng=random.Random(7))

        for _ in range(50):
            reading = generator.generate("XAUUSD", "MyFxBook")
            total = reading.long_positions + reading.short_positions
            assert 20000 <= total <= 30000
            assert reading.long_positions == math.floor(total * (reading.long_percentage / 100.0))
            assert 30.0 <= reading.volume <= 70.0

    def test_other_sources_have_no_positions(self):
        reading = FallbackGenerator(rng=random.Random(1)).generate("EURUSD", "OANDA")

        assert reading.long_positions is None
        assert reading.short_positions is None
        assert reading.volume is None

    def test_generate_all_keeps_order(self):
        readings = FallbackGenerator().generate_all("GBPUSD", ["OANDA", "MyFxBook", "FXSSI"])

        assert [r.source for r in readings] == ["OANDA", "MyFxBook", "FXSSI"]
        assert all(r.symbol == "GBPUSD" for r in readings)

    def test_invalid_range_rejected(self):
        with pytest.raises(ConfigurationError):
            FallbackGenerator(long_range=(70.0, 30.0))

    def test_from_config(self):
        config = FallbackConfig(long_min=45.0, long_max=55.0, detailed_sources=[])
        generator = FallbackGenerator.from_config(config, rng=random.Random(3))

        reading = generator.generate("XAUUSD", "MyFxBook")

        assert 45.0 <= reading.long_percentage <= 55.0
        assert reading.long_positions is None
