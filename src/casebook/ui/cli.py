# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from casebook.app import define_attribute, initialise_storage, open_edit_session
from casebook.config import configure_logging
from casebook.domain.model import AttributeDefinition, EntityType

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from casebook.domain.editing import RequestEditSession

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage casebook benevolence requests")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_db = subparsers.add_parser("init-db", help="Create the database schema")
    init_db.add_argument(
        "--database-uri",
        type=str,
        help="SQLAlchemy database URI (defaults to config)",
    )

    define = subparsers.add_parser("define-attribute", help="Create or replace an attribute")
    define.add_argument(
        "--entity-type",
        type=EntityType,
        choices=list(EntityType),
        required=True,
        help="Entity type the attribute belongs to",
    )
    define.add_argument("--key", type=str, required=True, help="Attribute key")
    define.add_argument("--name", type=str, required=True, help="Display name")
    define.add_argument("--default", type=str, help="Default value for records without one")
    define.add_argument(
        "--qualifier",
        type=str,
        help="Restrict to one sub-type (for results: the result type value id)",
    )
    define.add_argument("--order", type=int, default=0, help="Display order")
    define.add_argument(
        "--grid-column",
        action="store_true",
        help="Show the attribute as a column in result listings",
    )

    show = subparsers.add_parser("show-request", help="Print a request and its results")
    show.add_argument("request_id", type=int, help="Durable id of the request")

    return parser.parse_args(list(argv))


def _print_request(session: RequestEditSession) -> None:
    request = session.request
    print(f"Request {session.request_id}: {request.full_name}")
    if request.request_date is not None:
        print(f"  date: {request.request_date.isoformat()}")
    for key, value in request.attribute_values.items():
        print(f"  {key}: {value if value is not None else ''}")
    columns = session.grid_columns()
    for staged in session.results:
        label = staged.result_type_name or str(staged.result_type_value_id)
        print(f"  result {staged.guid} [{label}] amount={staged.amount}")
        for column in columns:
            print(f"    {column.name}: {staged.get_attribute_value(column.key) or ''}")
    if session.document_ids:
        print(f"  documents: {', '.join(str(file_id) for file_id in session.document_ids)}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.command == "show-request" and parsed_args.request_id <= 0:
            raise ValueError("Request id must be positive")  # noqa: TRY301
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "init-db":
            initialise_storage(database_uri=parsed_args.database_uri)
        elif parsed_args.command == "define-attribute":
            define_attribute(
                parsed_args.entity_type,
                AttributeDefinition(
                    key=parsed_args.key,
                    name=parsed_args.name,
                    default_value=parsed_args.default,
                    is_grid_column=parsed_args.grid_column,
                    order=parsed_args.order,
                    qualifier=parsed_args.qualifier,
                ),
            )
        elif parsed_args.command == "show-request":
            session = open_edit_session(parsed_args.request_id)
            if session.is_new:
                raise LookupError(f"Request {parsed_args.request_id} not found")  # noqa: TRY301
            _print_request(session)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error")
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
