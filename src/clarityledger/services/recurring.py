"""Recurring transaction templates and due-date processing."""

import logging
from datetime import date, datetime, timedelta

from pydantic import ValidationError

from ..core.dates import add_days, add_months, add_years
from ..core.ids import generate_id
from ..core.models import (
    ProcessResult,
    RecurringFrequency,
    RecurringTransaction,
    RecurringTransactionCreate,
    TransactionCreate,
)
from ..data.store import LAST_RECURRING_PROCESSING_TIME_KEY, JSONStore, recurring_transactions_key
from .transactions import TransactionRepository

logger = logging.getLogger(__name__)


def calculate_next_due_date(current: date, frequency: RecurringFrequency | str, start_date: date) -> date:
    """Date of the occurrence after ``current``.

    Monthly and yearly series are anchored on ``start_date``: a series started
    on the 31st lands on the last day of shorter months and returns to the
    31st afterwards. Raises ``ValueError`` for an unknown frequency.
    """
    try:
        frequency = RecurringFrequency(frequency)
    except ValueError:
        raise ValueError(f"Unknown frequency: {frequency}") from None

    if frequency == RecurringFrequency.DAILY:
        return add_days(current, 1)
    if frequency == RecurringFrequency.WEEKLY:
        return add_days(current, 7)
    if frequency == RecurringFrequency.MONTHLY:
        return add_months(current, 1, anchor_day=start_date.day)
    # YEARLY: the start date's month and day in the year after current
    return add_years(start_date, current.year + 1 - start_date.year)


class RecurringTransactionEngine:
    """Owns recurring templates and materializes their due occurrences."""

    def __init__(
        self,
        store: JSONStore,
        transactions: TransactionRepository,
        user_id: str,
        min_interval_hours: float = 12.0,
    ):
        self.store = store
        self.transactions = transactions
        self.user_id = user_id
        self.key = recurring_transactions_key(user_id)
        self.min_interval = timedelta(hours=min_interval_hours)

    def _load(self) -> list[tuple[dict, RecurringTransaction | None]]:
        """Stored records paired with their parsed template (``None`` if unreadable)."""
        loaded = []
        for record in self.store.load(self.key):
            try:
                loaded.append((record, RecurringTransaction.model_validate(record)))
            except ValidationError as e:
                logger.warning("Unreadable recurring transaction %s left untouched: %s", record.get("id"), e)
                loaded.append((record, None))
        return loaded

    def get_all(self) -> list[RecurringTransaction]:
        return [template for _, template in self._load() if template is not None]

    def get(self, template_id: str) -> RecurringTransaction | None:
        return next((t for t in self.get_all() if t.id == template_id), None)

    def replace_all(self, templates: list[RecurringTransaction]) -> None:
        self.store.save(self.key, [t.to_record() for t in templates])

    def add(self, data: RecurringTransactionCreate) -> RecurringTransaction:
        """Create an active template whose first occurrence is its start date."""
        template = RecurringTransaction(
            **data.model_dump(),
            id=generate_id("rectxn"),
            user_id=self.user_id,
            next_due_date=data.start_date,
            last_generated_date=None,
            is_active=True,
        )
        self._save_with(lambda records: records + [template.to_record()])
        return template

    def update(self, updated: RecurringTransaction) -> RecurringTransaction | None:
        """Replace a template by id.

        A changed start date resets the next due date, but only while nothing
        has been generated yet.
        """
        existing = self.get(updated.id)
        if existing is None:
            logger.warning("Recurring transaction with id %s not found for update.", updated.id)
            return None

        if existing.start_date != updated.start_date and not updated.last_generated_date:
            updated = updated.model_copy(update={"next_due_date": updated.start_date})

        record = updated.to_record()
        self._save_with(lambda records: [record if r.get("id") == updated.id else r for r in records])
        return updated

    def set_active(self, template_id: str, is_active: bool) -> RecurringTransaction | None:
        """Toggle a template without recomputing its next due date."""
        template = self.get(template_id)
        if template is None:
            logger.warning("Recurring transaction with id %s not found for toggle.", template_id)
            return None
        template.is_active = is_active
        record = template.to_record()
        self._save_with(lambda records: [record if r.get("id") == template_id else r for r in records])
        return template

    def delete(self, template_id: str) -> bool:
        """Hard delete; already generated transactions are kept."""
        records = self.store.load(self.key)
        remaining = [r for r in records if r.get("id") != template_id]
        if len(remaining) == len(records):
            logger.warning("Recurring transaction with id %s not found for deletion.", template_id)
            return False
        self.store.save(self.key, remaining)
        return True

    def _save_with(self, change) -> None:
        self.store.save(self.key, change(self.store.load(self.key)))

    def process_due(self, today: date) -> ProcessResult:
        """Materialize every occurrence due on or before ``today``.

        Templates are written back in one batch at the end.
        """
        result = ProcessResult()
        records = []
        for record, template in self._load():
            if template is None:
                records.append(self._process_unreadable(record, today, result))
                continue
            records.append(self._process_template(template, today, result).to_record())

        self.store.save(self.key, records)
        if result.created_count:
            logger.info("%d recurring transactions generated.", result.created_count)
        if result.errors:
            logger.error("Errors during recurring transaction processing: %s", result.errors)
        return result

    @staticmethod
    def _process_unreadable(record: dict, today: date, result: ProcessResult) -> dict:
        """Deactivate a due record whose only defect is its frequency.

        Any other unreadable record is returned unchanged.
        """
        try:
            readable = RecurringTransaction.model_validate({**record, "frequency": RecurringFrequency.DAILY.value})
        except ValidationError:
            return record
        if not readable.is_active or readable.next_due_date > today:
            return record
        result.errors.append(
            f"Error calculating next due date for {readable.description}: "
            f"Unknown frequency: {record.get('frequency')}"
        )
        return {**record, "isActive": False}

    def _process_template(
        self, template: RecurringTransaction, today: date, result: ProcessResult
    ) -> RecurringTransaction:
        if not template.is_active:
            return template

        current = template.model_copy(deep=True)
        while current.is_active and current.next_due_date <= today:
            if current.end_date and current.next_due_date > current.end_date:
                current.is_active = False
                break

            if current.last_generated_date == current.next_due_date:
                logger.info(
                    "Instance for %s on %s was already generated. Advancing due date.",
                    current.description,
                    current.next_due_date,
                )
                if not self._advance(current, result):
                    break
                continue

            try:
                self.transactions.add(
                    TransactionCreate(
                        description=current.description,
                        amount=current.amount,
                        type=current.type,
                        category=current.category,
                        date=current.next_due_date,
                        tags=list(current.tags),
                    )
                )
            except ValidationError as e:
                result.errors.append(f"Error creating transaction for {current.description}: {e}")
                current.is_active = False
                break
            result.created_count += 1
            current.last_generated_date = current.next_due_date

            if not self._advance(current, result):
                break

            if current.end_date and current.next_due_date > current.end_date:
                current.is_active = False
        return current

    @staticmethod
    def _advance(template: RecurringTransaction, result: ProcessResult) -> bool:
        """Move to the next due date; deactivate and report on failure."""
        try:
            template.next_due_date = calculate_next_due_date(
                template.next_due_date, template.frequency, template.start_date
            )
        except (ValueError, OverflowError) as e:
            result.errors.append(f"Error calculating next due date for {template.description}: {e}")
            template.is_active = False
            return False
        return True

    def run_if_due(self, now: datetime) -> ProcessResult | None:
        """Process templates unless a run happened within the minimum interval.

        The last run is stored as epoch milliseconds. Returns ``None`` when
        the run was skipped.
        """
        last_run = self.store.get_value(LAST_RECURRING_PROCESSING_TIME_KEY)
        now_ms = int(now.timestamp() * 1000)
        try:
            last_run_ms = int(last_run) if last_run is not None else None
        except (TypeError, ValueError):
            logger.warning("Ignoring unreadable last recurring run time: %r", last_run)
            last_run_ms = None

        if last_run_ms is not None and now_ms - last_run_ms <= self.min_interval.total_seconds() * 1000:
            logger.debug("Recurring transactions processed recently, skipping.")
            return None

        logger.info("Processing recurring transactions...")
        result = self.process_due(now.date())
        self.store.set_value(LAST_RECURRING_PROCESSING_TIME_KEY, now_ms)
        return result
