"""Reporting aggregates over transactions."""

from datetime import date
from typing import Any

from ..core.dates import add_months, month_key, month_range
from ..core.models import Transaction, TransactionType


def _in_range(transactions: list[Transaction], start: date | None, end: date | None) -> list[Transaction]:
    return [t for t in transactions if (start is None or t.date >= start) and (end is None or t.date <= end)]


def _totals_by_category(transactions: list[Transaction]) -> list[dict[str, Any]]:
    """Per-category sums, largest first."""
    totals: dict[str, float] = {}
    for t in transactions:
        totals[t.category] = totals.get(t.category, 0.0) + t.amount
    details = [{"name": name, "value": value} for name, value in totals.items()]
    details.sort(key=lambda x: x["value"], reverse=True)
    return details


def summarize_balance(transactions: list[Transaction]) -> dict[str, float]:
    """Overall income, expenses and balance."""
    income = sum(t.amount for t in transactions if t.type == TransactionType.INCOME)
    expenses = sum(t.amount for t in transactions if t.type == TransactionType.EXPENSE)
    return {"income": income, "expenses": expenses, "balance": income - expenses}


def cash_flow(transactions: list[Transaction], start: date | None = None, end: date | None = None) -> dict[str, Any]:
    """Income and expense totals for a date range with per-category detail."""
    selected = _in_range(transactions, start, end)
    income = [t for t in selected if t.type == TransactionType.INCOME]
    expenses = [t for t in selected if t.type == TransactionType.EXPENSE]
    total_income = sum(t.amount for t in income)
    total_expenses = sum(t.amount for t in expenses)

    return {
        "total_income": total_income,
        "total_expenses": total_expenses,
        "net_cash_flow": total_income - total_expenses,
        "income_details": _totals_by_category(income),
        "expense_details": _totals_by_category(expenses),
    }


def top_expense_categories(
    transactions: list[Transaction], start: date | None = None, end: date | None = None, limit: int = 10
) -> list[dict[str, Any]]:
    """Largest expense categories in the range."""
    expenses = [t for t in _in_range(transactions, start, end) if t.type == TransactionType.EXPENSE]
    return _totals_by_category(expenses)[:limit]


def monthly_spending_by_category(transactions: list[Transaction], start: date, end: date) -> dict[str, Any]:
    """Expense totals per month and category.

    Every month of the range gets a row, and every row lists every category
    seen in the range (zero where nothing was spent).
    """
    months = {key: {} for key in month_range(start, end)}
    categories: set[str] = set()

    for t in _in_range(transactions, start, end):
        if t.type != TransactionType.EXPENSE:
            continue
        spends = months.get(month_key(t.date))
        if spends is None:
            continue
        categories.add(t.category)
        spends[t.category] = spends.get(t.category, 0.0) + t.amount

    sorted_categories = sorted(categories)
    rows = [
        {"month": key, "spending": {category: spends.get(category, 0.0) for category in sorted_categories}}
        for key, spends in months.items()
    ]
    return {"categories": sorted_categories, "months": rows}


def income_expense_trend(transactions: list[Transaction], today: date, months: int = 6) -> list[dict[str, Any]]:
    """Income and expenses for the last ``months`` months, current month included, oldest first."""
    first_of_month = today.replace(day=1)
    trend = []
    for offset in range(months - 1, -1, -1):
        key = month_key(add_months(first_of_month, -offset))
        in_month = [t for t in transactions if month_key(t.date) == key]
        trend.append(
            {
                "month": key,
                "income": sum(t.amount for t in in_month if t.type == TransactionType.INCOME),
                "expenses": sum(t.amount for t in in_month if t.type == TransactionType.EXPENSE),
            }
        )
    return trend
