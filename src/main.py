import argparse
import logging
import os
import sys
from typing import List, Optional

from csv_records import write_accounts
from payments_engine import PaymentsEngine

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "PAYMENTS_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "ERROR"
VERBOSITY_LEVELS = ["ERROR", "WARNING", "INFO", "DEBUG"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payments-ledger",
        description="Apply a CSV stream of transactions and print the final client accounts as CSV.",
    )
    parser.add_argument("input", help="input CSV file, or '-' for standard input")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="show more log output (-v warnings, -vv info, -vvv debug)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help=f"explicit log level; overrides -v and ${LOG_LEVEL_ENV}",
    )
    return parser


def resolve_log_level(args: argparse.Namespace) -> str:
    if args.log_level:
        return args.log_level
    if args.verbose:
        return VERBOSITY_LEVELS[min(args.verbose, len(VERBOSITY_LEVELS) - 1)]
    level = os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
    if not isinstance(logging.getLevelName(level), int):
        return DEFAULT_LOG_LEVEL
    return level


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=resolve_log_level(args),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )

    engine = PaymentsEngine()
    try:
        engine.process_file(args.input)
    except OSError as e:
        logger.error(f"Cannot read input {args.input!r}: {e}")
        return 1

    write_accounts(engine.snapshot(), sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
