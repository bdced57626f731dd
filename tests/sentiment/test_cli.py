"""
Tests for the sentiment command-line interface.
"""

import json

import pytest
from unittest.mock import patch

from sentiment import cli
from sentiment.aggregator import SentimentAggregator
from sentiment.config import SentimentConfig
from sentiment.exceptions import ConfigurationError
from sentiment.registry import SourceDescriptor


@pytest.fixture
def cli_aggregator(gateway, fallback, make_source):
    return SentimentAggregator(
        [
            SourceDescriptor("FXSSI", [make_source("FXSSI", long_percentage=58.0)]),
            SourceDescriptor("OANDA", []),
        ],
        gateway,
        fallback=fallback,
    )


class TestParser:

    def test_refresh_symbol(self):
        args = cli.create_parser().parse_args(["refresh", "EURUSD"])

        assert args.command == "refresh"
        assert args.symbol == "EURUSD"
        assert args.log_level == "INFO"

    def test_multiple_symbols(self):
        args = cli.create_parser().parse_args(["--log-level", "DEBUG", "multiple", "A", "B"])

        assert args.symbols == ["A", "B"]
        assert args.log_level == "DEBUG"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.create_parser().parse_args([])


class TestMain:

    def _run(self, argv, aggregator, capsys):
        with patch.object(cli, "load_config", return_value=SentimentConfig()), \
                patch.object(cli, "build_aggregator", return_value=aggregator):
            code = cli.main(argv)
        return code, capsys.readouterr().out

    def test_refresh_prints_json(self, cli_aggregator, capsys):
        code, out = self._run(["refresh", "XAUUSD"], cli_aggregator, capsys)

        assert code == 0
        payload = json.loads(out)
        assert [s["source"] for s in payload["sentiments"]] == ["FXSSI", "OANDA"]
        assert payload["sentiments"][0]["long_percentage"] == 58.0

    def test_latest_uses_default_symbol(self, cli_aggregator, capsys):
        code, out = self._run(["latest"], cli_aggregator, capsys)

        assert code == 0
        payload = json.loads(out)
        assert payload["symbol"] == "XAUUSD"
        assert payload["sentiments"] == []

    def test_symbols(self, cli_aggregator, gateway, make_reading, capsys):
        gateway.save(make_reading("FXSSI", symbol="GBPUSD"))

        code, out = self._run(["symbols"], cli_aggregator, capsys)

        assert code == 0
        assert json.loads(out) == ["GBPUSD"]

    def test_multiple_defaults(self, cli_aggregator, capsys):
        code, out = self._run(["multiple"], cli_aggregator, capsys)

        assert [s["symbol"] for s in json.loads(out)] == ["XAUUSD", "EURUSD", "GBPUSD"]

    def test_persistence_failure_exit_code(self, cli_aggregator, gateway, capsys):
        gateway.fail_on_save = True

        code, out = self._run(["refresh", "XAUUSD"], cli_aggregator, capsys)

        assert code == 3
        assert out == ""

    def test_configuration_error_exit_code(self, capsys):
        with patch.object(cli, "load_config", side_effect=ConfigurationError("bad")):
            assert cli.main(["symbols"]) == 2
