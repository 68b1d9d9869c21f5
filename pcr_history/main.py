"""Command-line entry point: ``pcr-history``.

Usage:
    pcr-history append BANKNIFTY 0.94       Store one snapshot
    pcr-history query BANKNIFTY -w 1 5 15   Windowed averages / trend / sentiment
    pcr-history latest BANKNIFTY            Most recent snapshot
    pcr-history recent BANKNIFTY --hours 2  Snapshots of the last N hours
    pcr-history stats                       Store summary
    pcr-history clear [--symbol BANKNIFTY]  Drop history
    pcr-history status                      Market session state

Every command prints JSON on stdout; logs go to stderr and the log directory.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from pcr_history.analytics import IntervalAggregator
from pcr_history.config import AppConfig, load_app_config
from pcr_history.core.errors import ConfigurationError, PersistenceError, ValidationError
from pcr_history.core.time_utils import now_utc
from pcr_history.core.types import Clock
from pcr_history.market import MarketCalendar, SentimentClassifier
from pcr_history.storage import SnapshotStore
from pcr_history.telemetry import configure_logging

EXIT_OK = 0
EXIT_VALIDATION = 1
EXIT_PERSISTENCE = 2
EXIT_CONFIG = 3

_DEFAULT_CONFIG_PATH = Path("config") / "pcr.yml"


@dataclass(slots=True)
class Services:
    """Wired components shared by every command."""

    config: AppConfig
    calendar: MarketCalendar
    store: SnapshotStore
    aggregator: IntervalAggregator
    logger: logging.Logger


def build_services(config: AppConfig, *, clock: Clock = now_utc, logger: logging.Logger | None = None) -> Services:
    """Wire calendar, classifier, store and aggregator from ``config``."""

    logger = logger or logging.getLogger("pcr_history")
    calendar = MarketCalendar.from_config(config.market)
    classifier = SentimentClassifier.from_config(config.sentiment)
    store = SnapshotStore.from_config(
        config.storage,
        calendar=calendar,
        clock=clock,
        logger=logger.getChild("store"),
    )
    aggregator = IntervalAggregator(
        store,
        calendar=calendar,
        classifier=classifier,
        clock=clock,
        default_windows=config.aggregation.default_windows,
        trend_threshold=config.aggregation.trend_threshold,
        logger=logger.getChild("aggregator"),
    )
    return Services(config=config, calendar=calendar, store=store, aggregator=aggregator, logger=logger)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pcr-history", description="PCR snapshot history and interval analytics")
    parser.add_argument("--config", type=Path, default=None, help=f"YAML config (default: {_DEFAULT_CONFIG_PATH})")
    parser.add_argument("--data-dir", type=Path, default=None, help="Override storage.data_dir")
    sub = parser.add_subparsers(dest="command", required=True)

    append = sub.add_parser("append", help="Store one PCR snapshot")
    append.add_argument("symbol")
    append.add_argument("pcr", type=float)
    append.add_argument("--source", default=None)
    append.add_argument("--expiry", default=None)

    query = sub.add_parser("query", help="Windowed PCR statistics for a symbol")
    query.add_argument("symbol")
    query.add_argument("-w", "--windows", type=int, nargs="+", default=None, help="Window sizes in minutes")

    latest = sub.add_parser("latest", help="Most recent snapshot for a symbol")
    latest.add_argument("symbol")

    recent = sub.add_parser("recent", help="Snapshots recorded in the last N hours")
    recent.add_argument("symbol")
    recent.add_argument("--hours", type=float, default=24)

    sub.add_parser("stats", help="Store summary")

    clear = sub.add_parser("clear", help="Remove stored snapshots")
    clear.add_argument("--symbol", default=None)

    sub.add_parser("status", help="Market session state")
    return parser


def _load_config(args: argparse.Namespace) -> AppConfig:
    if args.config is not None:
        config = load_app_config(args.config)
    elif _DEFAULT_CONFIG_PATH.exists():
        config = load_app_config(_DEFAULT_CONFIG_PATH)
    else:
        config = AppConfig()
    if args.data_dir is not None:
        storage = config.storage.model_copy(update={"data_dir": str(args.data_dir)})
        config = config.model_copy(update={"storage": storage})
    return config


def _run_command(args: argparse.Namespace, services: Services) -> Any:
    store = services.store
    if args.command == "append":
        payload: dict[str, Any] = {"symbol": args.symbol, "pcr": args.pcr}
        if args.source:
            payload["source"] = args.source
        if args.expiry:
            payload["expiry"] = args.expiry
        return store.append(payload).to_dict()
    if args.command == "query":
        report = services.aggregator.historical_pcr(args.symbol, args.windows)
        return report.to_dict() if report else None
    if args.command == "latest":
        snapshot = store.latest(args.symbol)
        return snapshot.to_dict() if snapshot else None
    if args.command == "recent":
        return [snapshot.to_dict() for snapshot in store.recent(args.symbol, args.hours)]
    if args.command == "stats":
        return store.stats().to_dict()
    if args.command == "clear":
        return {"symbol": args.symbol, "removed": store.clear(args.symbol)}
    if args.command == "status":
        return services.calendar.status(now_utc()).to_dict()
    raise ValueError(f"Unknown command: {args.command}")  # pragma: no cover - argparse guards this


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        config = _load_config(args)
    except ConfigurationError as exc:
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        return EXIT_CONFIG

    telemetry = config.telemetry
    logger = configure_logging(
        log_dir=Path(telemetry.log_dir),
        level=telemetry.log_level,
        log_file=telemetry.log_file,
        backup_days=telemetry.backup_days,
    )
    try:
        services = build_services(config, logger=logger)
        result = _run_command(args, services)
    except ValidationError as exc:
        logger.warning("Rejected input", extra={"command": args.command, "error": str(exc)})
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        return EXIT_VALIDATION
    except PersistenceError as exc:
        logger.error("Snapshot write failed", extra={"command": args.command, "error": str(exc)})
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        return EXIT_PERSISTENCE
    print(json.dumps(result, indent=2, ensure_ascii=False))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
