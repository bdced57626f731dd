"""
Shared FastAPI dependencies.

The aggregator is built once from configuration and reused across requests.
Tests replace it through app.dependency_overrides[get_aggregator].
"""
import logging
from typing import Optional

from database import SqlSentimentGateway, create_all_tables, get_session_factory
from sentiment import SentimentAggregator, get_config

logger = logging.getLogger(__name__)

_aggregator: Optional[SentimentAggregator] = None


def get_aggregator() -> SentimentAggregator:
    global _aggregator
    if _aggregator is None:
        create_all_tables()
        _aggregator = SentimentAggregator.from_config(
            get_config(),
            SqlSentimentGateway(get_session_factory()),
        )
    return _aggregator


async def shutdown_aggregator() -> None:
    """Close fetchers of the shared aggregator, if one was built."""
    global _aggregator
    if _aggregator is not None:
        await _aggregator.close()
        _aggregator = None


def get_default_symbols() -> list[str]:
    """Symbols used when a request names none."""
    return list(get_config().default_symbols)


def get_default_symbol() -> str:
    """Symbol used by refresh and latest when a request names none."""
    return get_config().default_symbol
