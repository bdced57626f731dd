"""
Consensus Calculator - Reduces per-source readings to one long/short view.

The consensus is shown to users as the "weighted" sentiment but is an
unweighted arithmetic mean. Volume and position counts do not contribute.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from .models import ConsensusResult, SentimentReading


NEUTRAL_PERCENTAGE = 50.0

_ONE_DECIMAL = Decimal("0.1")


def round_one_decimal(value: float) -> float:
    """Round half up to one decimal place."""
    return float(Decimal(repr(value)).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


class ConsensusCalculator:
    """Unweighted mean of long and short percentages across sources."""

    def aggregate(self, readings: Iterable[SentimentReading]) -> ConsensusResult:
        """
        Compute consensus.

        Long and short are averaged independently, so a source whose
        percentages do not sum to 100 is reflected as reported.

        Returns neutral 50/50 with source_count 0 when there are no readings.
        """
        readings = list(readings)
        if not readings:
            return ConsensusResult(
                long_percentage=NEUTRAL_PERCENTAGE,
                short_percentage=NEUTRAL_PERCENTAGE,
                source_count=0,
            )

        count = len(readings)
        total_long = sum(r.long_percentage for r in readings)
        total_short = sum(r.short_percentage for r in readings)

        return ConsensusResult(
            long_percentage=round_one_decimal(total_long / count),
            short_percentage=round_one_decimal(total_short / count),
            source_count=count,
        )
