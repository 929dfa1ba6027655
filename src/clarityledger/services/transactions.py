"""Transaction repository."""

import logging

from pydantic import ValidationError

from ..core.ids import generate_id
from ..core.models import Transaction, TransactionCreate
from ..data.store import JSONStore, transactions_key

logger = logging.getLogger(__name__)


class TransactionRepository:
    """CRUD over the stored transaction collection.

    There is no in-place update; callers delete and re-add.
    """

    def __init__(self, store: JSONStore, user_id: str):
        self.store = store
        self.user_id = user_id
        self.key = transactions_key(user_id)

    def get_all(self) -> list[Transaction]:
        """Return every stored transaction, in storage order."""
        transactions = []
        for record in self.store.load(self.key):
            try:
                transactions.append(Transaction.model_validate(record))
            except ValidationError as e:
                logger.warning("Skipping malformed stored transaction %s: %s", record.get("id"), e)
        return transactions

    def add(self, data: TransactionCreate) -> Transaction:
        """Store a new transaction and return it with its generated id.

        Stored records are appended to as they are, unreadable ones included.
        """
        transaction = Transaction(
            **data.model_dump(),
            id=generate_id("txn"),
            user_id=self.user_id,
        )
        self.append(transaction)
        return transaction

    def append(self, *transactions: Transaction) -> None:
        self.store.save(self.key, self.store.load(self.key) + [t.to_record() for t in transactions])

    def stored_ids(self) -> set[str]:
        """Ids of every stored record, unreadable ones included."""
        return {r.get("id") for r in self.store.load(self.key)}

    def delete(self, transaction_id: str) -> bool:
        """Remove a transaction; returns False (and logs) if it does not exist."""
        records = self.store.load(self.key)
        remaining = [r for r in records if r.get("id") != transaction_id]
        if len(remaining) == len(records):
            logger.warning("Transaction with id %s not found for deletion.", transaction_id)
            return False
        self.store.save(self.key, remaining)
        return True

    def replace_all(self, transactions: list[Transaction]) -> None:
        self.store.save(self.key, [t.to_record() for t in transactions])
