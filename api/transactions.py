"""API routes for transaction operations."""

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from api.dependencies import get_transaction_repository
from src.clarityledger.core.dates import month_key
from src.clarityledger.core.models import Transaction, TransactionCreate, TransactionType
from src.clarityledger.services.transactions import TransactionRepository

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("/", response_model=list[Transaction])
async def get_transactions(
    month_year: str | None = Query(None, pattern=r"^\d{4}-\d{2}$"),
    type: TransactionType | None = Query(None),
    category: str | None = Query(None),
    repo: TransactionRepository = Depends(get_transaction_repository),
) -> list[Transaction]:
    """Get transactions, newest first, optionally filtered."""
    transactions = repo.get_all()
    if month_year:
        transactions = [t for t in transactions if month_key(t.date) == month_year]
    if type:
        transactions = [t for t in transactions if t.type == type]
    if category:
        transactions = [t for t in transactions if t.category == category]
    return sorted(transactions, key=lambda t: t.date, reverse=True)


@router.post("/", response_model=Transaction, status_code=201)
async def create_transaction(
    data: TransactionCreate, repo: TransactionRepository = Depends(get_transaction_repository)
) -> Transaction:
    """Create a new transaction."""
    return repo.add(data)


@router.delete("/{transaction_id}", status_code=204)
async def delete_transaction(
    transaction_id: str, repo: TransactionRepository = Depends(get_transaction_repository)
) -> Response:
    """Delete a transaction."""
    if not repo.delete(transaction_id):
        raise HTTPException(status_code=404, detail="Transaction not found")
    return Response(status_code=204)
