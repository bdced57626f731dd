"""
Sentiment Aggregation - Configuration.

============================================================
CONFIGURABLE SOURCES AND FALLBACK
============================================================

Configuration can be loaded from:
- Default values
- Environment variables (.env supported)
- YAML config file

Defaults: MyFxBook, Dukascopy and FXSSI with headless then simple HTTP
fetching, plus OANDA served from synthetic readings only.

============================================================
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError


logger = logging.getLogger(__name__)


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


# =============================================================
# SOURCES
# =============================================================


@dataclass
class SourceConfig:
    """
    One configured source.

    strategies: fetch strategies to use, any of "headless",
    "simple_http", "synthetic". Order does not matter: fetchers are
    always tried headless first.
    """
    name: str
    strategies: list[str] = field(default_factory=lambda: ["headless", "simple_http"])
    enabled: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "strategies": list(self.strategies),
            "enabled": self.enabled,
        }


def default_sources() -> list[SourceConfig]:
    return [
        SourceConfig(name="MyFxBook"),
        SourceConfig(name="Dukascopy"),
        SourceConfig(name="FXSSI"),
        SourceConfig(name="OANDA", strategies=["synthetic"]),
    ]


# =============================================================
# FALLBACK
# =============================================================


@dataclass
class FallbackConfig:
    """Ranges for synthetic readings."""
    long_min: float = 40.0
    long_max: float = 60.0
    position_total_min: int = 20000
    position_total_max: int = 30000
    volume_min: float = 30.0
    volume_max: float = 70.0
    detailed_sources: list[str] = field(default_factory=lambda: ["MyFxBook"])

    def __post_init__(self) -> None:
        """Validate ranges."""
        if not 0.0 <= self.long_min <= self.long_max <= 100.0:
            raise ConfigurationError("fallback long range must satisfy 0 <= min <= max <= 100")
        if self.position_total_min > self.position_total_max:
            raise ConfigurationError("position_total_min must be <= position_total_max")
        if self.volume_min > self.volume_max:
            raise ConfigurationError("volume_min must be <= volume_max")

    def to_dict(self) -> dict[str, Any]:
        return {
            "long_min": self.long_min,
            "long_max": self.long_max,
            "position_total_min": self.position_total_min,
            "position_total_max": self.position_total_max,
            "volume_min": self.volume_min,
            "volume_max": self.volume_max,
            "detailed_sources": list(self.detailed_sources),
        }


# =============================================================
# MAIN CONFIG
# =============================================================


@dataclass
class SentimentConfig:
    """Complete configuration for sentiment aggregation."""
    sources: list[SourceConfig] = field(default_factory=default_sources)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)

    http_timeout_seconds: float = 15.0
    headless_timeout_seconds: float = 45.0
    headless_enabled: bool = True
    refresh_deadline_seconds: Optional[float] = None

    latest_limit: int = 20
    default_symbol: str = "XAUUSD"
    default_symbols: list[str] = field(
        default_factory=lambda: ["XAUUSD", "EURUSD", "GBPUSD"]
    )
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        """Validate configuration."""
        names = [s.name for s in self.sources]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate source names: {', '.join(duplicates)}")
        if self.latest_limit < 1:
            raise ConfigurationError("latest_limit must be >= 1")
        if self.http_timeout_seconds <= 0 or self.headless_timeout_seconds <= 0:
            raise ConfigurationError("fetch timeouts must be positive")
        if self.refresh_deadline_seconds is not None and self.refresh_deadline_seconds <= 0:
            raise ConfigurationError("refresh_deadline_seconds must be positive")

    @property
    def source_names(self) -> list[str]:
        return [s.name for s in self.sources if s.enabled]

    @classmethod
    def from_env(cls) -> "SentimentConfig":
        """
        Load configuration from environment variables.

        SENTIMENT_CONFIG_FILE, when set, is loaded first and the remaining
        variables override it.
        """
        load_dotenv()

        config_file = os.getenv("SENTIMENT_CONFIG_FILE")
        config = cls.from_yaml(Path(config_file)) if config_file else cls()

        if os.getenv("SENTIMENT_SOURCES"):
            wanted = [
                name.strip()
                for name in os.getenv("SENTIMENT_SOURCES").split(",")
                if name.strip()
            ]
            known = {s.name: s for s in config.sources}
            config.sources = [known.get(name) or SourceConfig(name=name) for name in wanted]

        if os.getenv("SENTIMENT_HTTP_TIMEOUT"):
            config.http_timeout_seconds = float(os.getenv("SENTIMENT_HTTP_TIMEOUT"))
        if os.getenv("SENTIMENT_HEADLESS_TIMEOUT"):
            config.headless_timeout_seconds = float(os.getenv("SENTIMENT_HEADLESS_TIMEOUT"))
        if os.getenv("SENTIMENT_HEADLESS_ENABLED"):
            config.headless_enabled = _parse_bool(os.getenv("SENTIMENT_HEADLESS_ENABLED"))
        if os.getenv("SENTIMENT_REFRESH_DEADLINE"):
            config.refresh_deadline_seconds = float(os.getenv("SENTIMENT_REFRESH_DEADLINE"))
        if os.getenv("SENTIMENT_LATEST_LIMIT"):
            config.latest_limit = int(os.getenv("SENTIMENT_LATEST_LIMIT"))
        if os.getenv("SENTIMENT_DEFAULT_SYMBOL"):
            config.default_symbol = os.getenv("SENTIMENT_DEFAULT_SYMBOL").upper()

        config.__post_init__()
        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "SentimentConfig":
        """Load configuration from a YAML file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot load config file {path}: {e}") from e

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SentimentConfig":
        """Build configuration from a plain mapping."""
        kwargs: dict[str, Any] = {}

        if "sources" in data:
            kwargs["sources"] = [
                SourceConfig(
                    name=s["name"],
                    strategies=s.get("strategies", ["headless", "simple_http"]),
                    enabled=s.get("enabled", True),
                )
                for s in data["sources"]
            ]

        if "fallback" in data:
            f = data["fallback"]
            kwargs["fallback"] = FallbackConfig(
                long_min=f.get("long_min", 40.0),
                long_max=f.get("long_max", 60.0),
                position_total_min=f.get("position_total_min", 20000),
                position_total_max=f.get("position_total_max", 30000),
                volume_min=f.get("volume_min", 30.0),
                volume_max=f.get("volume_max", 70.0),
                detailed_sources=f.get("detailed_sources", ["MyFxBook"]),
            )

        for key in (
            "http_timeout_seconds",
            "headless_timeout_seconds",
            "headless_enabled",
            "refresh_deadline_seconds",
            "latest_limit",
            "default_symbol",
            "default_symbols",
            "user_agent",
        ):
            if key in data:
                kwargs[key] = data[key]

        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "sources": [s.to_dict() for s in self.sources],
            "fallback": self.fallback.to_dict(),
            "http_timeout_seconds": self.http_timeout_seconds,
            "headless_timeout_seconds": self.headless_timeout_seconds,
            "headless_enabled": self.headless_enabled,
            "refresh_deadline_seconds": self.refresh_deadline_seconds,
            "latest_limit": self.latest_limit,
            "default_symbol": self.default_symbol,
            "default_symbols": list(self.default_symbols),
        }


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


# Global config instance
_config: Optional[SentimentConfig] = None


def get_config() -> SentimentConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = SentimentConfig.from_env()
    return _config


def set_config(config: SentimentConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
