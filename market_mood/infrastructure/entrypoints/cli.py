"""
CLI entry point: run one refresh cycle and print the quotes and the mood.

This script is the Composition Root for terminal use: it wires the same
Container as the HTTP service and triggers RefreshMoodUseCase once.

    python -m market_mood.infrastructure.entrypoints.cli
    python -m market_mood.infrastructure.entrypoints.cli AAPL TSLA NVDA --no-narration
"""

import argparse
import asyncio
import os
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from market_mood.application.use_cases.refresh_mood import MoodReport
from market_mood.domain.errors import user_message
from market_mood.infrastructure.config import Settings
from market_mood.infrastructure.entrypoints.container import create_container
from market_mood.infrastructure.logging_config import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="market-mood",
        description="Fetch quotes and summarize today's market mood.",
    )
    parser.add_argument(
        "symbols",
        nargs="*",
        help="Ticker symbols (default: your favorites, initially SPY QQQ DIA)",
    )
    parser.add_argument(
        "--no-narration",
        action="store_true",
        help="Skip the language model and print the canned mood sentence",
    )
    parser.add_argument(
        "--provider",
        choices=["yahoo", "fmp", "alphavantage", "yfinance"],
        help="Override MARKET_MOOD_PROVIDER",
    )
    return parser


def format_report(report: MoodReport) -> str:
    lines = []
    for quote in report.quotes:
        lines.append(
            f"{quote.symbol:<8} {quote.price:>10.2f}  {quote.change_percent * 100:+6.2f}%"
            f"  {quote.display_name}"
        )
    for symbol, error in report.quotes.failures.items():
        lines.append(f"{symbol:<8} {'-':>10}  {user_message(error)}")
    if report.error_message:
        lines.append(f"Error: {report.error_message}")
    if report.sentence:
        suffix = " (stale)" if report.is_stale else ""
        lines.append("")
        lines.append(f"{report.sentence}{suffix}")
    return "\n".join(lines)


async def run(args: argparse.Namespace) -> int:
    environ = dict(os.environ)
    if args.provider:
        environ["MARKET_MOOD_PROVIDER"] = args.provider
    if args.no_narration:
        environ["MARKET_MOOD_NARRATION"] = "false"
    settings = Settings.from_env(environ)
    configure_logging(settings.log_level)

    container = create_container(settings)
    try:
        symbols = args.symbols or container.favorites.symbols
        report = await container.refresh_mood.execute(
            symbols, narrate=not args.no_narration
        )
    finally:
        await container.aclose()

    print(format_report(report))
    return 1 if report.error is not None else 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
