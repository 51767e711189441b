# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from identipy.adapters.payload import render_identity
from identipy.app import audit_contacts, identify_contact, identify_payload, lookup_contact
from identipy.config import ConfigurationError, configure_logging, parse_log_level
from identipy.domain.reconciliation import InvalidInput, NotFound

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile contact identities")
    parser.add_argument(
        "--log-level",
        type=str,
        help="Logging level (defaults to IDENTIPY_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    identify = subparsers.add_parser(
        "identify",
        help="Reconcile an email / phone number observation",
    )
    identify.add_argument("--email", type=str, help="Email address of the customer")
    identify.add_argument("--phone", type=str, help="Phone number of the customer")
    identify.add_argument(
        "--payload",
        type=str,
        help='JSON body such as {"email": ..., "phoneNumber": ...}; "-" reads stdin',
    )

    show = subparsers.add_parser("show", help="Show the identity containing a contact")
    show.add_argument("contact_id", type=int, help="Id of any contact of the identity")

    subparsers.add_parser("audit", help="Check the stored link graph for violations")

    return parser.parse_args(list(argv))


def _read_payload(value: str) -> str:
    if value == "-":
        return sys.stdin.read()
    return value


def _run_identify(args: argparse.Namespace) -> str:
    if args.payload is not None:
        if args.email is not None or args.phone is not None:
            raise InvalidInput("--payload cannot be combined with --email or --phone")
        return identify_payload(_read_payload(args.payload), indent=2)
    identity = identify_contact(args.email, args.phone)
    return render_identity(identity, indent=2)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    try:
        level = parse_log_level(parsed_args.log_level) if parsed_args.log_level else None
        configure_logging(level=level)
    except ConfigurationError:
        configure_logging(force=True, level=logging.INFO)
        log.exception("Invalid logging configuration")
        sys.exit(2)

    try:
        if parsed_args.command == "identify":
            print(_run_identify(parsed_args))
        elif parsed_args.command == "show":
            print(render_identity(lookup_contact(parsed_args.contact_id), indent=2))
        elif parsed_args.command == "audit":
            report = audit_contacts()
            print(json.dumps(report.to_payload(), indent=2))
            if not report.ok:
                sys.exit(1)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except (InvalidInput, ConfigurationError) as exc:
        log.error("Invalid input: %s", exc)  # noqa: TRY400
        sys.exit(2)
    except NotFound as exc:
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(1)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
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
