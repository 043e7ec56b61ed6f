# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from pricetag.app import init_config, list_products, plan_products, sync_products
from pricetag.config import API_KEY_ENV_VAR, ConfigurationError, configure_logging
from pricetag.domain.errors import (
    ConfigUnreadableError,
    LockStoreUnreadableError,
    PersistFailureError,
    SyncAbortedError,
)
from pricetag.domain.reconciliation import SyncAction

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from pricetag.domain.reconciliation import SyncReport

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pricetag",
        description="Sync developer products and gamepasses to Roblox",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init = subparsers.add_parser("init", help="Write a starter config file")
    init.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Overwrite an existing config file",
    )
    init.add_argument("-c", "--config", type=str, help="Config file path")

    sync = subparsers.add_parser("sync", help="Create or update all declared products")
    sync.add_argument("-c", "--config", type=str, help="Config file path")
    sync.add_argument("-l", "--lock", type=str, help="Lock file path")
    sync.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the plan without calling the API",
    )

    listing = subparsers.add_parser("list", help="List declared products and their remote ids")
    listing.add_argument("-c", "--config", type=str, help="Config file path")
    listing.add_argument("-l", "--lock", type=str, help="Lock file path")

    return parser.parse_args(list(argv))


def _log_failures(report: SyncReport) -> None:
    for result in report.failures():
        log.error("%s %s: %s", result.status, result.key, result.error)


def _run_init(args: argparse.Namespace) -> int:
    try:
        path = init_config(config_path=args.config, force=args.force)
    except FileExistsError as exc:
        log.error("%s (use --force to overwrite)", exc)  # noqa: TRY400
        return 1
    print("\nNext steps:")
    print(f"1. Edit {path.name} with your universe ID and products")
    print(f"2. Set {API_KEY_ENV_VAR} in your .env file")
    print("3. Run: pricetag sync")
    return 0


def _run_sync(args: argparse.Namespace) -> int:
    if args.dry_run:
        plan = plan_products(config_path=args.config, lock_path=args.lock)
        for entry in plan.entries:
            label = entry.product_type.label if entry.product_type else "-"
            print(f"[{entry.describe()}] {label} - {entry.key}")
        counts = plan.counts()
        print(
            f"\nPlan: {counts[SyncAction.CREATE]} create, {counts[SyncAction.UPDATE]} update, "
            f"{counts[SyncAction.UNCHANGED]} unchanged, {counts[SyncAction.ORPHANED]} orphaned"
        )
        return 0

    try:
        outcome = sync_products(config_path=args.config, lock_path=args.lock)
    except (SyncAbortedError, PersistFailureError) as exc:
        log.error("%s", exc)  # noqa: TRY400
        if exc.report is not None:
            _log_failures(exc.report)
            log.error("Summary: %s", exc.report.summary())
        return 1
    _log_failures(outcome.report)
    return 0 if outcome.report.ok else 1


def _run_list(args: argparse.Namespace) -> int:
    declaration, listings = list_products(config_path=args.config, lock_path=args.lock)
    print(f"Universe ID: {declaration.universe_id}")
    print("\nProducts:")
    print("-" * 60)
    for listing in listings:
        if listing.remote_id is None:
            status = "Not synced"
        else:
            status = f"ID: {listing.remote_id} (from {listing.source})"
        print(f"  {listing.key}")
        print(f"    Type: {listing.product_type.label}")
        print(f"    Name: {listing.name}")
        print(f"    Price: {listing.price} Robux")
        print(f"    Status: {status}")
        print()
    return 0


_COMMANDS = {
    "init": _run_init,
    "sync": _run_sync,
    "list": _run_list,
}


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        exit_code = _COMMANDS[parsed_args.command](parsed_args)
    except (ConfigurationError, ConfigUnreadableError, LockStoreUnreadableError) as exc:
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(1)
    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)

    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(130)


def run() -> None:
    """Console script entry point: load ``.env`` and install the SIGINT handler."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
