import logging
from typing import IO, Dict, Iterable, List

from csv_records import open_source, read_transactions
from models import AccountSnapshot, ClientAccount, ProcessingStats, Transaction
from state_manager import StateManager
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Runs a stream of transactions through the processor, strictly in
    input order, and exposes the resulting accounts.
    One engine is one run: it owns a fresh account store and ledger.
    """

    def __init__(self):
        self._state = StateManager()
        self._stats = ProcessingStats()
        self._processor = TransactionProcessor(self._state, self._stats)

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        """Apply every transaction in order and return final account states."""
        logger.info("Starting processing")

        for transaction in transactions:
            self._processor.process_transaction(transaction)

        logger.info(f"Processing complete. Applied: {self._stats.processed}, Discarded: {self._stats.discarded}")
        for reason, count in sorted(self._stats.discards.items(), key=lambda item: item[0].value):
            logger.info(f"  {reason.value}: {count}")

        return self._state.get_all_accounts()

    def process_stream(self, stream: IO[str]) -> Dict[int, ClientAccount]:
        """Process CSV from an open text stream."""
        return self.process(read_transactions(stream, self._stats))

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process a CSV file ('-' for standard input) and return final account states."""
        stream = open_source(filepath)
        try:
            return self.process_stream(stream)
        finally:
            if filepath != "-":
                stream.close()

    def snapshot(self) -> List[AccountSnapshot]:
        """Output rows for every account, in first-appearance order."""
        return self._state.snapshot()
