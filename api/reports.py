"""API routes for reports."""

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_backup_service, get_tip_adapter, get_transaction_repository
from src.clarityledger.core.models import FinancialTipResult
from src.clarityledger.data.backup import BackupService
from src.clarityledger.services import reports
from src.clarityledger.services.financial_tip import FinancialTipAdapter
from src.clarityledger.services.transactions import TransactionRepository

router = APIRouter(prefix="/reports", tags=["reports"])


def _month_start(today: date) -> date:
    return today.replace(day=1)


@router.get("/summary")
async def get_summary(repo: TransactionRepository = Depends(get_transaction_repository)) -> dict[str, float]:
    """Get overall income, expenses and balance."""
    return reports.summarize_balance(repo.get_all())


@router.get("/cash-flow")
async def get_cash_flow(
    start_date: date | None = Query(None, description="Start date (defaults to first of this month)"),
    end_date: date | None = Query(None, description="End date (defaults to today)"),
    repo: TransactionRepository = Depends(get_transaction_repository),
) -> dict[str, Any]:
    """Get income and expense totals with per-category detail."""
    start_date = start_date or _month_start(date.today())
    end_date = end_date or date.today()
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")
    return reports.cash_flow(repo.get_all(), start_date, end_date)


@router.get("/top-categories")
async def get_top_categories(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    limit: int = Query(10, ge=1, le=100),
    repo: TransactionRepository = Depends(get_transaction_repository),
) -> list[dict[str, Any]]:
    """Get the largest expense categories."""
    return reports.top_expense_categories(repo.get_all(), start_date, end_date, limit)


@router.get("/monthly-spending")
async def get_monthly_spending(
    start_date: date = Query(..., description="First day of the range"),
    end_date: date = Query(..., description="Last day of the range"),
    repo: TransactionRepository = Depends(get_transaction_repository),
) -> dict[str, Any]:
    """Get expense totals per month and category."""
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")
    return reports.monthly_spending_by_category(repo.get_all(), start_date, end_date)


@router.get("/trend")
async def get_trend(
    months: int = Query(6, ge=1, le=60),
    repo: TransactionRepository = Depends(get_transaction_repository),
) -> list[dict[str, Any]]:
    """Get monthly income and expenses for recent months."""
    return reports.income_expense_trend(repo.get_all(), date.today(), months)


@router.get("/tip", response_model=FinancialTipResult)
def get_financial_tip(
    repo: TransactionRepository = Depends(get_transaction_repository),
    backup: BackupService = Depends(get_backup_service),
    adapter: FinancialTipAdapter = Depends(get_tip_adapter),
) -> FinancialTipResult:
    """Get a short AI tip for the current balance; failures are reported in ``error``."""
    transactions = repo.get_all()
    balance = reports.summarize_balance(transactions)["balance"]
    return adapter.get_tip(balance, len(transactions), backup.get_settings().selected_currency)
