from typing import Dict, List, Optional

from amount import Amount
from models import AccountSnapshot, ClientAccount, LedgeredTransaction


class AccountStore:
    """
    Client accounts keyed by client id, in first-appearance order.
    Accounts are only ever created by get_or_create and never removed.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, client_id: int) -> bool:
        return client_id in self._accounts

    def get(self, client_id: int) -> Optional[ClientAccount]:
        """Return the account if it exists. Never creates one."""
        return self._accounts.get(client_id)

    def get_or_create(self, client_id: int) -> ClientAccount:
        """Get existing account or create a zeroed, unlocked one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def all(self) -> Dict[int, ClientAccount]:
        return dict(self._accounts)

    def snapshot(self) -> List[AccountSnapshot]:
        return [AccountSnapshot.of(account) for account in self._accounts.values()]


class TransactionLedger:
    """Accepted deposits, kept for dispute lookups."""

    def __init__(self):
        self._transactions: Dict[int, LedgeredTransaction] = {}

    def __len__(self) -> int:
        return len(self._transactions)

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._transactions

    def record_deposit(self, transaction_id: int, client_id: int, amount: Amount) -> LedgeredTransaction:
        if transaction_id in self._transactions:
            raise KeyError(f"transaction {transaction_id} already ledgered")
        entry = LedgeredTransaction(transaction_id=transaction_id, client_id=client_id, amount=amount)
        self._transactions[transaction_id] = entry
        return entry

    def get(self, transaction_id: int) -> Optional[LedgeredTransaction]:
        return self._transactions.get(transaction_id)


class StateManager:
    """
    State for a single run: one account store and one transaction ledger.
    Create a new instance per run; nothing is shared between runs.
    """

    def __init__(self):
        self.accounts = AccountStore()
        self.ledger = TransactionLedger()

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return self.accounts.all()

    def snapshot(self) -> List[AccountSnapshot]:
        return self.accounts.snapshot()
