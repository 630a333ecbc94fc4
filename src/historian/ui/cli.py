from __future__ import annotations

import argparse
import logging
import sys
from datetime import UTC, datetime
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from historian.adapters.sqlalchemy import create_engines
from historian.app import build_recorder, ensure_history_tables, record_change, render_history_ddl
from historian.config import ConfigurationError, configure_logging, load_configuration
from historian.domain.model import Action

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

log = logging.getLogger(__name__)

RECORDABLE_ACTIONS = tuple(action.value for action in Action if action is not Action.INITIAL)
RECORD_ID_TYPES: dict[str, Callable[[str], int | str]] = {"str": str, "int": int}


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Maintain history tables for audited entities")
    parser.add_argument(
        "--config",
        type=str,
        help="Path to the history mapping file (defaults to $HISTORIAN_CONFIG)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log generated SQL",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ensure = subparsers.add_parser(
        "ensure", help="Create and backfill missing history tables"
    )
    ensure.add_argument(
        "entities",
        nargs="*",
        help="Entity keys to ensure (default: every mapped entity)",
    )

    record = subparsers.add_parser("record", help="Record one change of an entity row")
    record.add_argument("entity", type=str, help="Entity key of the changed record")
    record.add_argument("record_id", type=str, help="Identifier of the source row")
    record.add_argument(
        "--action",
        type=str.upper,
        choices=RECORDABLE_ACTIONS,
        required=True,
        help="Kind of change",
    )
    record.add_argument(
        "--id-type",
        choices=tuple(RECORD_ID_TYPES),
        default="str",
        help="Conversion applied to RECORD_ID before it is bound (default: str, passed as given)",
    )
    record.add_argument(
        "--actor",
        type=str,
        default="",
        help="Who performed the change (default: empty)",
    )
    record.add_argument(
        "--at",
        type=str,
        help="ISO-8601 timestamp of the change (default: now, UTC)",
    )

    show_ddl = subparsers.add_parser("show-ddl", help="Print the history table DDL of an entity")
    show_ddl.add_argument("entity", type=str, help="Entity key")

    return parser.parse_args(list(argv))


def _parse_iso_datetime(value: str) -> datetime:
    try:
        normalized = value.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        dt = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO timestamp: {value}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _parse_record_id(value: str, id_type: str) -> int | str:
    try:
        return RECORD_ID_TYPES[id_type](value)
    except ValueError as exc:
        raise ValueError(f"Invalid {id_type} record identifier: {value}") from exc


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
    try:
        timestamp = None
        record_id: int | str | None = None
        if parsed_args.command == "record":
            record_id = _parse_record_id(parsed_args.record_id, parsed_args.id_type)
            if parsed_args.at:
                timestamp = _parse_iso_datetime(parsed_args.at)
        configuration = load_configuration(parsed_args.config)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        with create_engines(configuration) as engines:
            recorder = build_recorder(engines)
            if parsed_args.command == "ensure":
                results = ensure_history_tables(
                    configuration, recorder, parsed_args.entities or None
                )
                for entity_key, created in results.items():
                    log.info("%s: %s", entity_key, "created" if created else "exists")
            elif parsed_args.command == "record":
                record_change(
                    configuration,
                    recorder,
                    parsed_args.entity,
                    record_id,
                    Action(parsed_args.action),
                    actor_id=parsed_args.actor,
                    timestamp=timestamp,
                )
            elif parsed_args.command == "show-ddl":
                print(render_history_ddl(configuration, recorder, parsed_args.entity))  # noqa: T201
            else:
                raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error while maintaining history tables")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
