from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from typing import Any

from billsplit.logging import configure_logging, get_logger
from billsplit.schemas import calculate_request
from billsplit.services.split import ALL_METHODS, SIMPLIFIED_METHODS

METHOD_SETS = {
    "full": ALL_METHODS,
    "simplified": SIMPLIFIED_METHODS,
}


def _load_request(path: str) -> Any:
    if path == "-":
        return json.load(sys.stdin)
    with open(path, encoding="utf-8") as handle:
        return json.load(handle)


def main(argv: Sequence[str] | None = None) -> int:
    """Split a bill described by a JSON request and print the breakdown."""
    parser = argparse.ArgumentParser(
        prog="billsplit",
        description="Split a restaurant bill between participants.",
    )
    parser.add_argument("request", help="JSON file with items, subtotal, tax, tip and config ('-' for stdin)")
    parser.add_argument(
        "--method-set",
        choices=sorted(METHOD_SETS),
        default="full",
        help="which split strategies are enabled (default: full)",
    )
    parser.add_argument("--indent", type=int, default=2, help="JSON indentation of the output")
    parser.add_argument("--log-level", default=None, help="override BILLSPLIT_LOG_LEVEL")
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level)
    log = get_logger(__name__)
    log.info("cli.start", request=args.request, method_set=args.method_set)

    try:
        payload = _load_request(args.request)
    except (OSError, json.JSONDecodeError) as exc:
        log.error("cli.request_unreadable", request=args.request, error=str(exc))
        print(f"Cannot read request {args.request}: {exc}", file=sys.stderr)
        return 2
    if not isinstance(payload, dict):
        print("Request must be a JSON object", file=sys.stderr)
        return 2

    result = calculate_request(payload, methods=METHOD_SETS[args.method_set])
    log.info("cli.calculated", valid=result.is_valid, error=result.error_message, participants=len(result.participants))
    print(json.dumps(result.to_dict(), indent=args.indent))
    return 0 if result.is_valid else 1


if __name__ == "__main__":
    raise SystemExit(main())
