"""
Main entry point for the Vinted Alerts system.
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from .engine import AlertEngine
from .models.alert import Alert, AlertDefinition
from .models.config import Configuration
from .models.match import MatchRecord, SortMode
from .services.config_manager import ConfigurationManager
from .utils.logging import get_logger, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vinted-alerts",
        description="Watch Vinted listings and get notified about alert matches",
    )
    parser.add_argument("-c", "--config", help="Path to configuration file")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level",
    )
    parser.set_defaults(command="run")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("run", help="Poll continuously until interrupted")
    subparsers.add_parser("poll-once", help="Run a single polling cycle")

    add_alert = subparsers.add_parser("add-alert", help="Create an alert")
    add_alert.add_argument("--term", default="", help="Search term (title or brand)")
    add_alert.add_argument("--brand", default="", help="Brand filter")
    add_alert.add_argument("--size", default="", help="Size filter")
    add_alert.add_argument("--condition", default="", help="Condition filter")
    add_alert.add_argument("--max-price", type=float, help="Maximum price, inclusive")
    add_alert.add_argument("--name", default="", help="Display name")

    subparsers.add_parser("list-alerts", help="List alerts")

    remove_alert = subparsers.add_parser("remove-alert", help="Remove an alert")
    remove_alert.add_argument("alert_id", help="ID of the alert to remove")

    matches = subparsers.add_parser("matches", help="Show stored matches")
    matches.add_argument("-q", "--query", default="", help="Free-text filter")
    matches.add_argument(
        "--sort",
        choices=[mode.value for mode in SortMode],
        default=SortMode.NEWEST.value,
        help="Sort order",
    )

    subparsers.add_parser("clear-matches", help="Delete all stored matches")

    notifications = subparsers.add_parser(
        "notifications", help="Turn match notifications on or off"
    )
    notifications.add_argument("state", choices=["on", "off"])

    return parser


def format_alert(alert: Alert) -> str:
    max_price = alert.max_price if alert.max_price is not None else "-"
    return (
        f"{alert.id}  {alert.name}  term={alert.term or '-'} "
        f"brand={alert.brand or '-'} size={alert.size or '-'} "
        f"condition={alert.condition or '-'} max_price={max_price}"
    )


def format_record(record: MatchRecord) -> str:
    listing = record.listing
    price = listing.price if listing.price is not None else "?"
    return (
        f"{record.seen_at:%Y-%m-%d %H:%M:%S}  {price} {listing.currency}  "
        f"{listing.title}  [{', '.join(record.matched_alert_names)}]  "
        f"{listing.country}  {listing.url}"
    )


def load_configuration(config_path: Optional[str]) -> Configuration:
    return ConfigurationManager(config_path).load_config()


async def run_command(engine: AlertEngine, args: argparse.Namespace) -> int:
    """Execute a one-shot command against an initialized engine."""
    if args.command == "poll-once":
        records = await engine.poll_once()
        for record in records:
            print(format_record(record))
        print(f"{len(records)} matches")
        status = engine.get_status()
        return 1 if status["last_error"] and not records else 0

    if args.command == "add-alert":
        alert = engine.add_alert(
            AlertDefinition(
                name=args.name,
                term=args.term,
                brand=args.brand,
                size=args.size,
                condition=args.condition,
                max_price=args.max_price,
            )
        )
        print(f"Added alert {alert.id} ({alert.name})")
        return 0

    if args.command == "list-alerts":
        alerts = engine.alerts()
        for alert in alerts:
            print(format_alert(alert))
        if not alerts:
            print("No alerts")
        return 0

    if args.command == "remove-alert":
        if engine.remove_alert(args.alert_id):
            print(f"Removed alert {args.alert_id}")
            return 0
        print(f"Alert not found: {args.alert_id}")
        return 1

    if args.command == "matches":
        records = engine.matches(args.query, args.sort)
        for record in records:
            print(format_record(record))
        if not records:
            print("No matches")
        return 0

    if args.command == "clear-matches":
        engine.clear_matches()
        print("Matches cleared")
        return 0

    if args.command == "notifications":
        enabled = engine.set_notifications_enabled(args.state == "on")
        print(f"Notifications {'enabled' if enabled else 'disabled'}")
        return 0 if enabled == (args.state == "on") else 1

    raise ValueError(f"Unknown command: {args.command}")


async def async_main(args: argparse.Namespace) -> int:
    """Async main application entry point."""
    try:
        config = load_configuration(args.config)
    except (ValueError, FileNotFoundError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(
        log_dir=config.logging.log_dir,
        log_level=args.log_level or config.logging.level,
    )
    logger = get_logger("main")

    if args.command == "add-alert":
        try:
            AlertDefinition(
                term=args.term, brand=args.brand, max_price=args.max_price
            ).validate()
        except ValueError as e:
            print(f"Invalid alert: {e}", file=sys.stderr)
            return 2

    engine = AlertEngine(config)

    if args.command == "run":
        logger.info("Starting Vinted Alerts", extra={"config_path": args.config})
        await engine.run()
        return 0

    if not await engine.initialize():
        logger.error("Engine initialization failed")
        return 1

    try:
        return await run_command(engine, args)
    finally:
        await engine.shutdown()


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)

    try:
        return asyncio.run(async_main(args))
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
