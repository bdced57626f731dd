"""
Database ORM Models.

============================================================
SENTIMENT DATA TABLE
============================================================

One row per stored reading. Rows are appended, never updated.
Volume is stored as an integer scaled by 100.

============================================================
"""

import uuid

from sqlalchemy import (
    Column, Integer, String, Float, DateTime, Index,
)

from sentiment.models import utc_now

from .engine import Base


VOLUME_SCALE = 100


def generate_uuid():
    """Generate a new UUID."""
    return str(uuid.uuid4())


class SentimentRecord(Base):
    """
    Retail positioning snapshot.

    Source: sentiment.aggregator
    Update Frequency: Per refresh
    """
    __tablename__ = "sentiment_data"

    id = Column(String(36), primary_key=True, default=generate_uuid)

    symbol = Column(String(20), nullable=False)
    source = Column(String(50), nullable=False)

    long_percentage = Column(Float, nullable=False)
    short_percentage = Column(Float, nullable=False)
    volume = Column(Integer, nullable=True)  # lots * 100
    long_positions = Column(Integer, nullable=True)
    short_positions = Column(Integer, nullable=True)

    strategy = Column(String(20), nullable=False)

    # Timestamps
    timestamp = Column(DateTime, nullable=False, default=utc_now)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    __table_args__ = (
        Index("ix_sentiment_data_symbol_timestamp", "symbol", "timestamp"),
    )

    def __repr__(self) -> str:
        return (
            f"<SentimentRecord {self.symbol} {self.source} "
            f"{self.long_percentage}/{self.short_percentage} @ {self.timestamp}>"
        )
