import csv
import io
import logging
import sys
from typing import IO, Iterable, Iterator, List, Optional

from amount import Amount, InvalidAmount
from models import AccountSnapshot, DiscardReason, ProcessingStats, Transaction, TransactionType

logger = logging.getLogger(__name__)

OUTPUT_COLUMNS = ["client", "available", "held", "total", "locked"]

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


class MalformedRecord(ValueError):
    """A CSV row that cannot be turned into a Transaction."""

    def __init__(self, reason: DiscardReason, message: str):
        super().__init__(message)
        self.reason = reason


def open_source(path: str) -> IO[str]:
    """
    Open the input stream. '-' means standard input.
    Undecodable bytes become surrogates so one bad row is discarded
    by parse_row instead of failing the whole read.
    """
    if path == "-":
        buffer = getattr(sys.stdin, "buffer", None)
        if buffer is None:
            return sys.stdin
        return io.TextIOWrapper(buffer, encoding="utf-8", errors="surrogateescape", newline="")
    return open(path, "r", encoding="utf-8", errors="surrogateescape", newline="")


def read_transactions(stream: IO[str], stats: Optional[ProcessingStats] = None) -> Iterator[Transaction]:
    """
    Yield transactions from a CSV stream in file order.

    The first non-blank row is the header and is skipped. Rows that cannot
    be parsed are logged, counted in stats and skipped. I/O errors on the
    stream itself propagate.
    """
    reader = csv.reader(stream, skipinitialspace=True)
    header_seen = False

    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            _report(stats, DiscardReason.MALFORMED_RECORD, f"Failed to read line {reader.line_num}: {e}")
            continue

        if not row or all(not field.strip() for field in row):
            continue
        if not header_seen:
            header_seen = True
            continue

        try:
            yield parse_row(row)
        except MalformedRecord as e:
            _report(stats, e.reason, f"Failed to parse line {reader.line_num} {row}: {e}")


def parse_row(row: List[str]) -> Transaction:
    """Parse one CSV row (type, client, tx[, amount]) into a Transaction."""
    fields = [field.strip() for field in row]
    for field in fields:
        try:
            field.encode("utf-8")
        except UnicodeEncodeError:
            raise MalformedRecord(DiscardReason.MALFORMED_RECORD, f"undecodable bytes in field {field!r}") from None
    if len(fields) not in (3, 4):
        raise MalformedRecord(DiscardReason.MALFORMED_RECORD, f"expected 3 or 4 columns, got {len(fields)}")
    if len(fields) == 3:
        fields.append("")
    type_str, client_str, tx_str, amount_str = fields

    try:
        transaction_type = TransactionType.parse(type_str)
    except ValueError:
        raise MalformedRecord(DiscardReason.UNKNOWN_TYPE, f"unknown transaction type {type_str!r}") from None

    transaction_id = _parse_id(tx_str, "tx", MAX_TRANSACTION_ID)

    if not transaction_type.moves_funds:
        # dispute/resolve/chargeback name a deposit by id; any amount is ignored
        client_id = _parse_id(client_str, "client", MAX_CLIENT_ID) if client_str else None
        return Transaction(transaction_type=transaction_type, client_id=client_id, transaction_id=transaction_id)

    client_id = _parse_id(client_str, "client", MAX_CLIENT_ID)
    if not amount_str:
        raise MalformedRecord(DiscardReason.INVALID_AMOUNT, f"{transaction_type.value} requires an amount")
    try:
        amount = Amount.parse(amount_str)
    except InvalidAmount as e:
        raise MalformedRecord(DiscardReason.INVALID_AMOUNT, str(e)) from None
    if not amount.is_positive():
        raise MalformedRecord(DiscardReason.INVALID_AMOUNT, f"{transaction_type.value} amount must be positive, got {amount}")

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _parse_id(value: str, column: str, maximum: int) -> int:
    if not (value.isascii() and value.isdigit()):
        raise MalformedRecord(DiscardReason.MALFORMED_RECORD, f"{column} must be an unsigned integer, got {value!r}")
    parsed = int(value)
    if parsed > maximum:
        raise MalformedRecord(DiscardReason.MALFORMED_RECORD, f"{column} {parsed} out of range (max {maximum})")
    return parsed


def _report(stats: Optional[ProcessingStats], reason: DiscardReason, message: str) -> None:
    logger.warning(message)
    if stats is not None:
        stats.record_discard(reason)


def write_accounts(snapshots: Iterable[AccountSnapshot], stream: IO[str]) -> None:
    """Write the final account table as CSV."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_COLUMNS)
    for snapshot in snapshots:
        writer.writerow([
            snapshot.client_id,
            str(snapshot.available),
            str(snapshot.held),
            str(snapshot.total),
            str(snapshot.locked).lower(),
        ])
