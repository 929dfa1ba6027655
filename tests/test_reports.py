"""Tests for report aggregates."""

from datetime import date

from src.clarityledger.core.models import Transaction, TransactionType
from src.clarityledger.services.reports import (
    cash_flow,
    income_expense_trend,
    monthly_spending_by_category,
    summarize_balance,
    top_expense_categories,
)

INCOME = TransactionType.INCOME
EXPENSE = TransactionType.EXPENSE


def txn(day: date, amount: float, category: str, txn_type: TransactionType = EXPENSE) -> Transaction:
    return Transaction(
        id=f"txn_{day}_{category}_{amount}",
        user_id="user",
        description=category,
        amount=amount,
        type=txn_type,
        category=category,
        date=day,
    )


TRANSACTIONS = [
    txn(date(2024, 1, 31), 3000, "Salary", INCOME),
    txn(date(2024, 2, 1), 3000, "Salary", INCOME),
    txn(date(2024, 2, 10), 250, "Freelance", INCOME),
    txn(date(2024, 2, 3), 120, "Food"),
    txn(date(2024, 2, 20), 80, "Food"),
    txn(date(2024, 2, 5), 1000, "Housing"),
    txn(date(2024, 2, 29), 40, "Transport"),
    txn(date(2024, 3, 1), 60, "Food"),
]


class TestSummaries:
    def test_balance(self):
        assert summarize_balance(TRANSACTIONS) == {"income": 6250, "expenses": 1300, "balance": 4950}

    def test_balance_of_nothing(self):
        assert summarize_balance([]) == {"income": 0, "expenses": 0, "balance": 0}

    def test_cash_flow_for_month(self):
        report = cash_flow(TRANSACTIONS, date(2024, 2, 1), date(2024, 2, 29))

        assert report["total_income"] == 3250
        assert report["total_expenses"] == 1240
        assert report["net_cash_flow"] == 2010
        assert report["income_details"] == [{"name": "Salary", "value": 3000}, {"name": "Freelance", "value": 250}]
        assert report["expense_details"] == [
            {"name": "Housing", "value": 1000},
            {"name": "Food", "value": 200},
            {"name": "Transport", "value": 40},
        ]

    def test_cash_flow_without_bounds(self):
        assert cash_flow(TRANSACTIONS)["net_cash_flow"] == 4950

    def test_top_expense_categories(self):
        top = top_expense_categories(TRANSACTIONS, limit=2)

        assert top == [{"name": "Housing", "value": 1000}, {"name": "Food", "value": 260}]


class TestMonthlySpending:
    def test_every_month_and_category_present(self):
        report = monthly_spending_by_category(TRANSACTIONS, date(2024, 1, 1), date(2024, 3, 31))

        assert report["categories"] == ["Food", "Housing", "Transport"]
        assert report["months"] == [
            {"month": "2024-01", "spending": {"Food": 0.0, "Housing": 0.0, "Transport": 0.0}},
            {"month": "2024-02", "spending": {"Food": 200, "Housing": 1000, "Transport": 40}},
            {"month": "2024-03", "spending": {"Food": 60, "Housing": 0.0, "Transport": 0.0}},
        ]

    def test_empty_range(self):
        report = monthly_spending_by_category([], date(2024, 5, 1), date(2024, 5, 31))

        assert report == {"categories": [], "months": [{"month": "2024-05", "spending": {}}]}


class TestTrend:
    def test_last_months_oldest_first(self):
        trend = income_expense_trend(TRANSACTIONS, date(2024, 3, 15), months=3)

        assert trend == [
            {"month": "2024-01", "income": 3000, "expenses": 0},
            {"month": "2024-02", "income": 3250, "expenses": 1240},
            {"month": "2024-03", "income": 0, "expenses": 60},
        ]

    def test_spans_year_boundary(self):
        trend = income_expense_trend([], date(2024, 2, 29), months=6)

        assert [row["month"] for row in trend] == ["2023-09", "2023-10", "2023-11", "2023-12", "2024-01", "2024-02"]
