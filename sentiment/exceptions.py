"""
Sentiment Exceptions - Custom error hierarchy.

Per-source errors (SentimentSourceError and subclasses) never leave a
fetcher: they are captured into a FetchFailure and logged. PersistenceError
is the only error a refresh or read propagates to its caller.
"""

from datetime import datetime, timezone
from typing import Any, Optional


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SentimentSourceError(Exception):
    """Base exception for all sentiment source errors."""

    def __init__(
        self,
        message: str,
        source_name: str = "",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.source_name = source_name
        self.details = details or {}
        self.timestamp = _now()
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "source_name": self.source_name,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class FetchError(SentimentSourceError):
    """Failed to fetch data from the source."""

    def __init__(
        self,
        message: str,
        source_name: str = "",
        status_code: Optional[int] = None,
        url: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, details)
        self.status_code = status_code
        self.url = url

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "status_code": self.status_code,
            "url": self.url,
        })
        return data


class FetchTimeoutError(FetchError):
    """The fetcher's own timeout elapsed."""

    def __init__(
        self,
        message: str,
        source_name: str = "",
        timeout_seconds: Optional[float] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message, source_name, url=url)
        self.timeout_seconds = timeout_seconds

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["timeout_seconds"] = self.timeout_seconds
        return data


class ParseError(SentimentSourceError):
    """Response did not have the expected shape."""

    def __init__(
        self,
        message: str,
        source_name: str = "",
        raw_data: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, details)
        self.raw_data = raw_data[:500] if raw_data else None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "raw_data_preview": self.raw_data[:100] if self.raw_data else None,
        })
        return data


class SymbolNotFoundError(SentimentSourceError):
    """Symbol is absent from the source's data."""

    def __init__(
        self,
        symbol: str,
        source_name: str = "",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            f"Symbol {symbol} not found in {source_name or 'source'} data",
            source_name,
            details,
        )
        self.symbol = symbol


class PersistenceError(Exception):
    """Storage unavailable, or a write/query failed."""

    def __init__(
        self,
        message: str,
        operation: str = "",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.operation = operation
        self.details = details or {}
        super().__init__(
            f"{operation}: {message}" if operation else message
        )


class ConfigurationError(Exception):
    """Invalid source or fallback configuration."""
    pass
