"""Key/value JSON store over the storage table."""

import json
import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.database import StorageEntryORM

logger = logging.getLogger(__name__)

TRANSACTIONS_KEY_PREFIX = "clarityLedgerTransactions_"
BUDGETS_KEY = "clarityLedgerBudgets"
RECURRING_TRANSACTIONS_KEY = "clarityLedgerRecurringTransactions"
LAST_RECURRING_PROCESSING_TIME_KEY = "clarityLedgerLastRecurringProcessingTime"
SETTINGS_KEY = "clarityLedgerSettings"


def transactions_key(user_id: str) -> str:
    return f"{TRANSACTIONS_KEY_PREFIX}{user_id}"


def recurring_transactions_key(user_id: str) -> str:
    return f"{RECURRING_TRANSACTIONS_KEY}_{user_id}"


class JSONStore:
    """Reads and writes whole JSON documents by key.

    Collections are always written as a full snapshot. Unreadable data is
    logged and treated as absent so callers keep working.
    """

    def __init__(self, session: Session):
        self.session = session

    def load(self, key: str) -> list[dict[str, Any]]:
        """Load a collection; malformed or missing data yields an empty list."""
        value = self.get_value(key)
        if value is None:
            return []
        if not isinstance(value, list):
            logger.error("Stored collection %s is not a JSON array, ignoring it", key)
            return []
        return value

    def save(self, key: str, records: list[dict[str, Any]]) -> None:
        """Replace a collection with ``records``."""
        self.set_value(key, list(records))

    def get_value(self, key: str) -> Any:
        """Load any JSON document, or ``None`` if absent or unreadable."""
        try:
            entry = self.session.get(StorageEntryORM, key)
        except SQLAlchemyError as e:
            logger.error("Error reading %s from storage: %s", key, e)
            return None

        if entry is None:
            return None

        try:
            return json.loads(entry.value)
        except (TypeError, ValueError) as e:
            logger.error("Error parsing %s from storage: %s", key, e)
            return None

    def set_value(self, key: str, value: Any) -> None:
        """Write one JSON document in a single commit."""
        try:
            payload = json.dumps(value, ensure_ascii=False)
            entry = self.session.get(StorageEntryORM, key)
            if entry is None:
                self.session.add(StorageEntryORM(key=key, value=payload))
            else:
                entry.value = payload
            self.session.commit()
        except (SQLAlchemyError, TypeError, ValueError) as e:
            self.session.rollback()
            logger.error("Error saving %s to storage: %s", key, e)

    def remove(self, key: str) -> None:
        try:
            entry = self.session.get(StorageEntryORM, key)
            if entry is not None:
                self.session.delete(entry)
                self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Error removing %s from storage: %s", key, e)
