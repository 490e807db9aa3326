from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from catalogsync.app import listen_for_variant_changes, sync_variants
from catalogsync.config import ConfigurationError, configure_logging, get_sync_config

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from catalogsync.config import SyncConfig

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Distribute catalog variants across channels")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Reconcile variants of one or all channels")
    sync.add_argument(
        "--source-channel-id",
        type=str,
        help="Only reconcile variants of this channel (defaults to all channels)",
    )
    sync.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Number of variants to load per page (defaults to config)",
    )

    listen = subparsers.add_parser(
        "listen",
        help="Distribute variants for JSON change notifications, one per line",
    )
    listen.add_argument(
        "--input",
        type=str,
        default="-",
        help="File to read notifications from (default: stdin)",
    )
    listen.add_argument(
        "--settle-delay",
        type=float,
        default=None,
        help="Seconds to wait before handling each notification (defaults to config)",
    )

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _build_config(args: argparse.Namespace) -> SyncConfig:
    config = get_sync_config()
    batch_size = getattr(args, "batch_size", None)
    if batch_size is not None:
        if batch_size < 1:
            raise ValueError("Batch size must be at least 1")
        config = replace(config, batch_size=batch_size)
    settle_delay = getattr(args, "settle_delay", None)
    if settle_delay is not None:
        if settle_delay < 0:
            raise ValueError("Settle delay must be non-negative")
        config = replace(config, settle_delay_seconds=settle_delay)
    return config


def _listen(path: str, config: SyncConfig) -> int:
    if path == "-":
        return listen_for_variant_changes(sys.stdin, config=config)
    with open(path, encoding="utf-8") as handle:  # noqa: PTH123
        return listen_for_variant_changes(handle, config=config)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        configure_logging()
        parsed_args = _parse_args(args_list)
        config = _build_config(parsed_args)
        source_channel_id = (
            _parse_uuid(parsed_args.source_channel_id)
            if getattr(parsed_args, "source_channel_id", None)
            else None
        )
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "sync":
            result = sync_variants(source_channel_id=source_channel_id, config=config)
            if not result.success:
                log.error("Variant sync failed: %s", result.message)
                sys.exit(1)
            log.info(result.message)
        elif parsed_args.command == "listen":
            handled = _listen(parsed_args.input, config)
            log.info("Handled %s notification(s)", handled)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
