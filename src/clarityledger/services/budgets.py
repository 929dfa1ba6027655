"""Budget repository and monthly rollover computation."""

import logging

from pydantic import ValidationError

from ..core.dates import month_key, previous_month_key
from ..core.ids import generate_id
from ..core.models import Budget, BudgetCreate, BudgetWithDetails, Transaction, TransactionType
from ..data.store import BUDGETS_KEY, JSONStore

logger = logging.getLogger(__name__)


def spent_in_month(transactions: list[Transaction], category: str, month_year: str) -> float:
    """Sum of expenses in ``category`` dated within ``month_year``."""
    return sum(
        t.amount
        for t in transactions
        if t.type == TransactionType.EXPENSE and t.category == category and month_key(t.date) == month_year
    )


def compute_month(
    month_year: str, transactions: list[Transaction], budgets: list[Budget]
) -> list[BudgetWithDetails]:
    """Project each budget of ``month_year`` with spent, rollover and effective target.

    Rollover looks exactly one month back, and only at a budget for the same
    category that also allows rollover. Its leftover (or overspend, as a
    negative amount) is added to this month's target; the effective target
    never goes below zero. Duplicate budgets for one category are projected
    independently.
    """
    details = []
    for budget in (b for b in budgets if b.month_year == month_year):
        spent = spent_in_month(transactions, budget.category, month_year)
        rollover = 0.0
        effective_target = budget.target_amount

        if budget.allow_rollover:
            prev_key = previous_month_key(budget.month_year)
            prev_budget = next(
                (
                    b
                    for b in budgets
                    if b.category == budget.category and b.month_year == prev_key and b.allow_rollover
                ),
                None,
            )
            if prev_budget is not None:
                rollover = prev_budget.target_amount - spent_in_month(transactions, prev_budget.category, prev_key)
                effective_target += rollover

        details.append(
            BudgetWithDetails(
                **budget.model_dump(),
                spent_amount=spent,
                rollover_amount=rollover,
                effective_target_amount=max(0.0, effective_target),
            )
        )
    return details


class BudgetRepository:
    """CRUD over the stored budget collection for one user."""

    def __init__(self, store: JSONStore, user_id: str):
        self.store = store
        self.user_id = user_id

    def _load_all_users(self) -> list[dict]:
        return self.store.load(BUDGETS_KEY)

    def get_all(self) -> list[Budget]:
        budgets = []
        for record in self._load_all_users():
            if record.get("userId") != self.user_id:
                continue
            try:
                budgets.append(Budget.model_validate(record))
            except ValidationError as e:
                logger.warning("Skipping malformed stored budget %s: %s", record.get("id"), e)
        return budgets

    def get_for_month(self, month_year: str) -> list[Budget]:
        return [b for b in self.get_all() if b.month_year == month_year]

    def get_month_details(self, month_year: str, transactions: list[Transaction]) -> list[BudgetWithDetails]:
        return compute_month(month_year, transactions, self.get_all())

    def add(self, data: BudgetCreate) -> Budget:
        budget = Budget(**data.model_dump(), id=generate_id("budget"), user_id=self.user_id)
        self.store.save(BUDGETS_KEY, self._load_all_users() + [budget.to_record()])
        return budget

    def _is_own(self, record: dict, budget_id: str) -> bool:
        return record.get("id") == budget_id and record.get("userId") == self.user_id

    def update(self, updated: Budget) -> Budget | None:
        """Replace the budget with the same id; ``None`` if it does not exist."""
        records = self._load_all_users()
        for index, record in enumerate(records):
            if self._is_own(record, updated.id):
                updated = updated.model_copy(update={"user_id": self.user_id})
                records[index] = updated.to_record()
                self.store.save(BUDGETS_KEY, records)
                return updated
        logger.warning("Budget with id %s not found for update.", updated.id)
        return None

    def delete(self, budget_id: str) -> bool:
        records = self._load_all_users()
        remaining = [r for r in records if not self._is_own(r, budget_id)]
        if len(remaining) == len(records):
            logger.warning("Budget with id %s not found for deletion.", budget_id)
            return False
        self.store.save(BUDGETS_KEY, remaining)
        return True

    def replace_all(self, budgets: list[Budget]) -> None:
        """Overwrite the stored budgets, each stamped with the current user."""
        records = [b.model_copy(update={"user_id": self.user_id}).to_record() for b in budgets]
        self.store.save(BUDGETS_KEY, records)
