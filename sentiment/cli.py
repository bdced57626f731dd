"""
Sentiment - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line access to the aggregator.

- refresh:  fetch all sources, persist, print the merged set
- latest:   print the stored readings for a symbol (no fetching)
- symbols:  list symbols with stored readings
- multiple: print consensus for several symbols

Output is JSON on stdout; logs go to stderr.

============================================================
USAGE
============================================================
python -m sentiment.cli refresh XAUUSD
python -m sentiment.cli latest EURUSD
python -m sentiment.cli multiple XAUUSD EURUSD GBPUSD
python -m sentiment.cli --config sentiment.yaml --log-level DEBUG refresh XAUUSD

============================================================
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .aggregator import SentimentAggregator
from .config import SentimentConfig, set_config
from .exceptions import ConfigurationError, PersistenceError


logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging to stderr."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="sentiment",
        description="Retail FX sentiment aggregation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s refresh XAUUSD                 # Fetch, store and print
  %(prog)s latest XAUUSD                  # Stored readings only
  %(prog)s symbols                        # Symbols with stored data
  %(prog)s multiple XAUUSD EURUSD         # Consensus per symbol
        """
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML configuration file (overrides environment)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    refresh = subparsers.add_parser("refresh", help="Fetch all sources and persist")
    refresh.add_argument("symbol", nargs="?", default=None)

    latest = subparsers.add_parser("latest", help="Latest stored readings")
    latest.add_argument("symbol", nargs="?", default=None)

    subparsers.add_parser("symbols", help="Symbols with stored readings")

    multiple = subparsers.add_parser("multiple", help="Consensus for several symbols")
    multiple.add_argument("symbols", nargs="*")

    return parser


def load_config(path: Optional[Path]) -> SentimentConfig:
    """YAML file when given, environment otherwise."""
    config = SentimentConfig.from_yaml(path) if path else SentimentConfig.from_env()
    set_config(config)
    return config


def build_aggregator(config: SentimentConfig) -> SentimentAggregator:
    """Aggregator backed by the SQL gateway from DATABASE_URL."""
    from database import SqlSentimentGateway, create_all_tables, get_session_factory

    create_all_tables()
    return SentimentAggregator.from_config(
        config,
        SqlSentimentGateway(get_session_factory()),
    )


async def run_command(
    args: argparse.Namespace,
    config: SentimentConfig,
    aggregator: SentimentAggregator,
) -> object:
    """Execute one subcommand and return a JSON-serializable payload."""
    try:
        if args.command == "refresh":
            result = await aggregator.refresh(args.symbol or config.default_symbol)
            return result.to_dict()

        if args.command == "latest":
            latest = await aggregator.get_latest(args.symbol or config.default_symbol)
            return latest.to_dict()

        if args.command == "symbols":
            return await aggregator.get_all_symbols()

        if args.command == "multiple":
            summaries = await aggregator.get_multiple(args.symbols or config.default_symbols)
            return [s.to_dict() for s in summaries]

        raise ValueError(f"Unknown command: {args.command}")
    finally:
        await aggregator.close()


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    try:
        config = load_config(args.config)
        aggregator = build_aggregator(config)
        payload = asyncio.run(run_command(args, config, aggregator))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2
    except PersistenceError as e:
        logger.error(f"Storage unavailable: {e}")
        return 3
    except ValueError as e:
        logger.error(str(e))
        return 2

    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
