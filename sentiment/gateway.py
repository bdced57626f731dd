"""
Persistence Gateway - Storage contract consumed by the aggregator.

Storage is append-only: readings are saved, never updated. Implementations
raise PersistenceError for any storage failure.
"""

from abc import ABC, abstractmethod
from typing import Iterable

from .models import SentimentReading


class PersistenceGateway(ABC):
    """Durable store for sentiment readings."""

    @abstractmethod
    def save(self, reading: SentimentReading) -> None:
        """Append one reading."""

    @abstractmethod
    def query_recent(self, symbol: str, limit: int) -> list[SentimentReading]:
        """Most recent readings for symbol, newest first, at most limit."""

    @abstractmethod
    def distinct_symbols(self) -> list[str]:
        """Every symbol with at least one stored reading."""

    def save_many(self, readings: Iterable[SentimentReading]) -> int:
        """
        Append readings in order. Returns the number saved.

        The aggregator stores a refresh through this method. Stores that
        support transactions override it so a failed batch keeps nothing.
        """
        count = 0
        for reading in readings:
            self.save(reading)
            count += 1
        return count
