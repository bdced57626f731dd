"""
Sentiment Repository - SQLAlchemy implementation of the persistence gateway.

============================================================
PURPOSE
============================================================
Append and query sentiment readings in the sentiment_data table.
Every SQLAlchemy failure surfaces as PersistenceError.

Methods are synchronous; the aggregator calls them from worker
threads so the event loop never blocks on the database.

============================================================
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from sentiment.gateway import PersistenceGateway
from sentiment.models import FetchStrategy, SentimentReading

from .engine import get_session_factory, transaction_scope
from .models import VOLUME_SCALE, SentimentRecord


logger = logging.getLogger(__name__)


def reading_to_record(reading: SentimentReading) -> SentimentRecord:
    """Map a reading onto a new row."""
    volume = None
    if reading.volume is not None:
        volume = int(round(reading.volume * VOLUME_SCALE))

    return SentimentRecord(
        symbol=reading.symbol,
        source=reading.source,
        long_percentage=reading.long_percentage,
        short_percentage=reading.short_percentage,
        volume=volume,
        long_positions=reading.long_positions,
        short_positions=reading.short_positions,
        strategy=reading.strategy.value,
        timestamp=reading.timestamp,
    )


def record_to_reading(record: SentimentRecord) -> SentimentReading:
    """Map a stored row back onto a reading."""
    volume = None
    if record.volume is not None:
        volume = record.volume / VOLUME_SCALE

    return SentimentReading(
        symbol=record.symbol,
        source=record.source,
        long_percentage=record.long_percentage,
        short_percentage=record.short_percentage,
        timestamp=record.timestamp,
        volume=volume,
        long_positions=record.long_positions,
        short_positions=record.short_positions,
        strategy=FetchStrategy(record.strategy),
    )


class SqlSentimentGateway(PersistenceGateway):
    """
    Gateway over the sentiment_data table.

    Usage:
        engine = create_database_engine("sqlite:///:memory:")
        create_all_tables(engine)
        gateway = SqlSentimentGateway(get_session_factory(engine))
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None) -> None:
        self._session_factory = session_factory or get_session_factory()

    def save(self, reading: SentimentReading) -> None:
        with transaction_scope(self._session_factory, "save") as session:
            session.add(reading_to_record(reading))
        logger.debug(
            f"Saved {reading.source} reading for {reading.symbol} "
            f"({reading.strategy.value})"
        )

    def save_many(self, readings) -> int:
        """Append readings in a single transaction."""
        records = [reading_to_record(r) for r in readings]
        with transaction_scope(self._session_factory, "save_many") as session:
            session.add_all(records)
        logger.info(f"Saved {len(records)} sentiment readings")
        return len(records)

    def query_recent(self, symbol: str, limit: int) -> list[SentimentReading]:
        stmt = (
            select(SentimentRecord)
            .where(SentimentRecord.symbol == symbol)
            .order_by(
                SentimentRecord.timestamp.desc(),
                SentimentRecord.created_at.desc(),
            )
            .limit(limit)
        )
        with transaction_scope(self._session_factory, "query_recent") as session:
            records = session.execute(stmt).scalars().all()
            return [record_to_reading(r) for r in records]

    def distinct_symbols(self) -> list[str]:
        stmt = (
            select(SentimentRecord.symbol)
            .distinct()
            .order_by(SentimentRecord.symbol)
        )
        with transaction_scope(self._session_factory, "distinct_symbols") as session:
            return list(session.execute(stmt).scalars().all())
