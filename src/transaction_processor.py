import logging
from typing import Optional, Tuple, assert_never

from models import (
    ClientAccount,
    DiscardReason,
    LedgeredTransaction,
    ProcessingResult,
    ProcessingStats,
    Transaction,
    TransactionState,
    TransactionType,
)
from state_manager import StateManager

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to state, one at a time, in the order given.
    Every handler either applies its full effect and returns SUCCESS, or
    changes nothing and returns DISCARDED after reporting why.
    """

    def __init__(self, state: StateManager, stats: Optional[ProcessingStats] = None):
        self._state = state
        self._stats = stats if stats is not None else ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            SUCCESS: state was updated
            DISCARDED: record rejected, state untouched (reason logged and counted)
        """
        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                result = self._handle_deposit(transaction)
            case TransactionType.WITHDRAWAL:
                result = self._handle_withdrawal(transaction)
            case TransactionType.DISPUTE:
                result = self._handle_dispute(transaction)
            case TransactionType.RESOLVE:
                result = self._handle_resolve(transaction)
            case TransactionType.CHARGEBACK:
                result = self._handle_chargeback(transaction)
            case _:
                assert_never(transaction.transaction_type)

        if result == ProcessingResult.SUCCESS:
            self._stats.record_success()
        return result

    def _discard(self, transaction: Transaction, reason: DiscardReason, detail: str) -> ProcessingResult:
        logger.warning(f"Discarding {transaction}: {reason.value} ({detail})")
        self._stats.record_discard(reason)
        return ProcessingResult.DISCARDED

    def _check_transfer(self, transaction: Transaction) -> Optional[ProcessingResult]:
        """Deposits and withdrawals need a client and a strictly positive amount."""
        if transaction.client_id is None:
            return self._discard(transaction, DiscardReason.MALFORMED_RECORD, "missing client id")
        if transaction.amount is None or not transaction.amount.is_positive():
            return self._discard(transaction, DiscardReason.INVALID_AMOUNT, f"amount must be positive, got {transaction.amount}")
        return None

    def _handle_deposit(self, transaction: Transaction) -> ProcessingResult:
        rejected = self._check_transfer(transaction)
        if rejected is not None:
            return rejected

        # checks run before get_or_create so a discarded deposit never materialises an account
        existing = self._state.accounts.get(transaction.client_id)
        if existing is not None and existing.locked:
            return self._discard(transaction, DiscardReason.ACCOUNT_LOCKED, f"client {existing.client_id} is locked")

        if transaction.transaction_id in self._state.ledger:
            return self._discard(transaction, DiscardReason.DUPLICATE_TRANSACTION, f"tx {transaction.transaction_id} already seen")

        account = self._state.accounts.get_or_create(transaction.client_id)
        account.credit(transaction.amount)
        self._state.ledger.record_deposit(transaction.transaction_id, account.client_id, transaction.amount)
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, transaction: Transaction) -> ProcessingResult:
        # Withdrawals are never ledgered: only deposits can be disputed.
        rejected = self._check_transfer(transaction)
        if rejected is not None:
            return rejected

        account = self._state.accounts.get(transaction.client_id)
        if account is None:
            return self._discard(transaction, DiscardReason.ACCOUNT_NOT_FOUND, f"no account for client {transaction.client_id}")
        if account.locked:
            return self._discard(transaction, DiscardReason.ACCOUNT_LOCKED, f"client {account.client_id} is locked")

        if account.available < transaction.amount:
            return self._discard(
                transaction,
                DiscardReason.INSUFFICIENT_FUNDS,
                f"available {account.available}, requested {transaction.amount}",
            )

        account.debit(transaction.amount)
        return ProcessingResult.SUCCESS

    def _resolve_disputed(self, transaction: Transaction) -> Tuple[Optional[ClientAccount], Optional[LedgeredTransaction], Optional[ProcessingResult]]:
        """
        Find the account and ledger entry a dispute/resolve/chargeback refers to.
        Returns (account, entry, None) on success, or (None, None, DISCARDED).
        """
        entry = self._state.ledger.get(transaction.transaction_id)
        client_id = transaction.client_id
        if client_id is None:
            if entry is None:
                return None, None, self._discard(transaction, DiscardReason.TRANSACTION_NOT_FOUND, f"unknown tx {transaction.transaction_id}")
            client_id = entry.client_id

        account = self._state.accounts.get(client_id)
        if account is None:
            return None, None, self._discard(transaction, DiscardReason.ACCOUNT_NOT_FOUND, f"no account for client {client_id}")
        if account.locked:
            return None, None, self._discard(transaction, DiscardReason.ACCOUNT_LOCKED, f"client {client_id} is locked")

        if entry is None:
            return None, None, self._discard(transaction, DiscardReason.TRANSACTION_NOT_FOUND, f"unknown tx {transaction.transaction_id}")
        if entry.client_id != account.client_id:
            return None, None, self._discard(
                transaction,
                DiscardReason.CLIENT_MISMATCH,
                f"tx {entry.transaction_id} belongs to client {entry.client_id}, not {account.client_id}",
            )

        return account, entry, None

    def _handle_dispute(self, transaction: Transaction) -> ProcessingResult:
        account, entry, rejected = self._resolve_disputed(transaction)
        if rejected is not None:
            return rejected

        if not entry.can_be_disputed:
            return self._discard(transaction, DiscardReason.INVALID_STATE, f"tx {entry.transaction_id} is {entry.state.value}")

        account.hold(entry.amount)
        entry.state = TransactionState.DISPUTED
        return ProcessingResult.SUCCESS

    def _handle_resolve(self, transaction: Transaction) -> ProcessingResult:
        account, entry, rejected = self._resolve_disputed(transaction)
        if rejected is not None:
            return rejected

        if not entry.is_disputed:
            return self._discard(transaction, DiscardReason.INVALID_STATE, f"tx {entry.transaction_id} is {entry.state.value}, not disputed")

        account.release_hold(entry.amount)
        entry.state = TransactionState.RESOLVED
        return ProcessingResult.SUCCESS

    def _handle_chargeback(self, transaction: Transaction) -> ProcessingResult:
        account, entry, rejected = self._resolve_disputed(transaction)
        if rejected is not None:
            return rejected

        if not entry.is_disputed:
            return self._discard(transaction, DiscardReason.INVALID_STATE, f"tx {entry.transaction_id} is {entry.state.value}, not disputed")

        account.remove_held(entry.amount)
        account.lock()
        entry.state = TransactionState.CHARGED_BACK
        return ProcessingResult.SUCCESS
