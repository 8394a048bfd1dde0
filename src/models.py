from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from amount import Amount


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @classmethod
    def parse(cls, value: str) -> "TransactionType":
        """Case-insensitive lookup. Raises ValueError for unknown types."""
        return cls(value.strip().lower())

    @property
    def moves_funds(self) -> bool:
        """Deposits and withdrawals carry their own client and amount."""
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class TransactionState(Enum):
    NORMAL = "normal"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


class ProcessingResult(Enum):
    SUCCESS = "success"
    DISCARDED = "discarded"


class DiscardReason(Enum):
    MALFORMED_RECORD = "malformed_record"
    UNKNOWN_TYPE = "unknown_type"
    INVALID_AMOUNT = "invalid_amount"
    ACCOUNT_NOT_FOUND = "account_not_found"
    ACCOUNT_LOCKED = "account_locked"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    CLIENT_MISMATCH = "client_mismatch"
    INVALID_STATE = "invalid_state"


@dataclass(frozen=True)
class Transaction:
    """One input record. client_id may be None for dispute/resolve/chargeback."""

    transaction_type: TransactionType
    client_id: Optional[int]
    transaction_id: int
    amount: Optional[Amount] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class LedgeredTransaction:
    """What is kept of an accepted deposit so it can be disputed later."""

    transaction_id: int
    client_id: int
    amount: Amount
    state: TransactionState = TransactionState.NORMAL

    @property
    def can_be_disputed(self) -> bool:
        return self.state in (TransactionState.NORMAL, TransactionState.RESOLVED)

    @property
    def is_disputed(self) -> bool:
        return self.state == TransactionState.DISPUTED


@dataclass
class ClientAccount:
    client_id: int
    available: Amount = Amount.ZERO
    held: Amount = Amount.ZERO
    locked: bool = False

    @property
    def total(self) -> Amount:
        return self.available + self.held

    def credit(self, amount: Amount) -> None:
        self.available += amount

    def debit(self, amount: Amount) -> None:
        self.available -= amount

    def hold(self, amount: Amount) -> None:
        # available may go negative if the disputed funds were already withdrawn
        self.available -= amount
        self.held += amount

    def release_hold(self, amount: Amount) -> None:
        self.held -= amount
        self.available += amount

    def remove_held(self, amount: Amount) -> None:
        self.held -= amount

    def lock(self) -> None:
        self.locked = True


@dataclass(frozen=True)
class AccountSnapshot:
    """One output row."""

    client_id: int
    available: Amount
    held: Amount
    total: Amount
    locked: bool

    @classmethod
    def of(cls, account: ClientAccount) -> "AccountSnapshot":
        return cls(
            client_id=account.client_id,
            available=account.available,
            held=account.held,
            total=account.total,
            locked=account.locked,
        )


@dataclass
class ProcessingStats:
    """Counters for one run. Discards are tallied per reason."""

    processed: int = 0
    discards: Counter = field(default_factory=Counter)

    @property
    def discarded(self) -> int:
        return sum(self.discards.values())

    def record_success(self) -> None:
        self.processed += 1

    def record_discard(self, reason: DiscardReason) -> None:
        self.discards[reason] += 1
