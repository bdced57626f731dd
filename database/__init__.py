"""
Database Package Initialization.

============================================================
SENTIMENT PERSISTENCE LAYER
============================================================

SQLAlchemy storage for sentiment readings. Writes are explicit
transactions; every failure raises PersistenceError.

============================================================
"""

from .engine import (
    Base,
    DEFAULT_DATABASE_URL,
    create_all_tables,
    create_database_engine,
    get_database_url,
    get_engine,
    get_session_factory,
    reset_engine,
    transaction_scope,
)
from .models import SentimentRecord
from .repository import SqlSentimentGateway, reading_to_record, record_to_reading


__all__ = [
    "Base",
    "DEFAULT_DATABASE_URL",
    "create_all_tables",
    "create_database_engine",
    "get_database_url",
    "get_engine",
    "get_session_factory",
    "reset_engine",
    "transaction_scope",
    "SentimentRecord",
    "SqlSentimentGateway",
    "reading_to_record",
    "record_to_reading",
]
