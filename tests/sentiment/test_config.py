"""
Tests for sentiment configuration loading and validation.
"""

import pytest

from sentiment.config import (
    FallbackConfig,
    SentimentConfig,
    SourceConfig,
    get_config,
    set_config,
)
from sentiment.exceptions import ConfigurationError


ENV_KEYS = [
    "SENTIMENT_CONFIG_FILE",
    "SENTIMENT_SOURCES",
    "SENTIMENT_HTTP_TIMEOUT",
    "SENTIMENT_HEADLESS_TIMEOUT",
    "SENTIMENT_HEADLESS_ENABLED",
    "SENTIMENT_REFRESH_DEADLINE",
    "SENTIMENT_LATEST_LIMIT",
    "SENTIMENT_DEFAULT_SYMBOL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestDefaults:

    def test_default_values(self):
        config = SentimentConfig()

        assert config.source_names == ["MyFxBook", "Dukascopy", "FXSSI", "OANDA"]
        assert config.latest_limit == 20
        assert config.default_symbol == "XAUUSD"
        assert config.default_symbols == ["XAUUSD", "EURUSD", "GBPUSD"]
        assert config.refresh_deadline_seconds is None
        assert config.fallback.long_min == 40.0
        assert config.fallback.long_max == 60.0

    def test_duplicate_source_names(self):
        with pytest.raises(ConfigurationError):
            SentimentConfig(sources=[SourceConfig(name="A"), SourceConfig(name="A")])

    def test_invalid_fallback_range(self):
        with pytest.raises(ConfigurationError):
            FallbackConfig(long_min=70.0, long_max=30.0)

    def test_invalid_limit(self):
        with pytest.raises(ConfigurationError):
            SentimentConfig(latest_limit=0)

    def test_zero_sources_allowed(self):
        assert SentimentConfig(sources=[]).source_names == []


class TestFromEnv:

    def test_overrides(self, clean_env):
        clean_env.setenv("SENTIMENT_SOURCES", "FXSSI, OANDA")
        clean_env.setenv("SENTIMENT_HTTP_TIMEOUT", "5")
        clean_env.setenv("SENTIMENT_HEADLESS_ENABLED", "false")
        clean_env.setenv("SENTIMENT_REFRESH_DEADLINE", "20")
        clean_env.setenv("SENTIMENT_LATEST_LIMIT", "10")
        clean_env.setenv("SENTIMENT_DEFAULT_SYMBOL", "eurusd")

        config = SentimentConfig.from_env()

        assert config.source_names == ["FXSSI", "OANDA"]
        assert config.sources[1].strategies == ["synthetic"]
        assert config.http_timeout_seconds == 5.0
        assert config.headless_enabled is False
        assert config.refresh_deadline_seconds == 20.0
        assert config.latest_limit == 10
        assert config.default_symbol == "EURUSD"

    def test_invalid_env_value_rejected(self, clean_env):
        clean_env.setenv("SENTIMENT_LATEST_LIMIT", "0")

        with pytest.raises(ConfigurationError):
            SentimentConfig.from_env()


class TestFromYaml:

    def test_load(self, tmp_path):
        path = tmp_path / "sentiment.yaml"
        path.write_text(
            "sources:\n"
            "  - name: MyFxBook\n"
            "    strategies: [simple_http]\n"
            "  - name: OANDA\n"
            "    strategies: [synthetic]\n"
            "fallback:\n"
            "  long_min: 45\n"
            "  long_max: 55\n"
            "latest_limit: 5\n"
        )

        config = SentimentConfig.from_yaml(path)

        assert config.source_names == ["MyFxBook", "OANDA"]
        assert config.sources[0].strategies == ["simple_http"]
        assert config.fallback.long_min == 45
        assert config.latest_limit == 5

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            SentimentConfig.from_yaml(tmp_path / "missing.yaml")

    def test_dict_round_trip(self):
        config = SentimentConfig(latest_limit=7)

        restored = SentimentConfig.from_dict(config.to_dict())

        assert restored.to_dict() == config.to_dict()


class TestGlobalConfig:

    def test_set_and_get(self):
        config = SentimentConfig(default_symbol="GBPUSD")
        set_config(config)
        try:
            assert get_config() is config
        finally:
            set_config(None)
