"""API routes for budget operations."""

from fastapi import APIRouter, Depends, HTTPException, Path, Response

from api.dependencies import get_budget_repository, get_transaction_repository
from src.clarityledger.core.models import Budget, BudgetCreate, BudgetWithDetails
from src.clarityledger.services.budgets import BudgetRepository
from src.clarityledger.services.transactions import TransactionRepository

router = APIRouter(prefix="/budgets", tags=["budgets"])


@router.get("/", response_model=list[Budget])
async def get_budgets(repo: BudgetRepository = Depends(get_budget_repository)) -> list[Budget]:
    """Get all budgets."""
    return repo.get_all()


@router.get("/month/{month_year}", response_model=list[BudgetWithDetails])
async def get_month_budgets(
    month_year: str = Path(..., pattern=r"^\d{4}-\d{2}$"),
    repo: BudgetRepository = Depends(get_budget_repository),
    transactions: TransactionRepository = Depends(get_transaction_repository),
) -> list[BudgetWithDetails]:
    """Get a month's budgets with spent, rollover and effective target."""
    return repo.get_month_details(month_year, transactions.get_all())


@router.post("/", response_model=Budget, status_code=201)
async def create_budget(data: BudgetCreate, repo: BudgetRepository = Depends(get_budget_repository)) -> Budget:
    """Create a new budget."""
    return repo.add(data)


@router.put("/{budget_id}", response_model=Budget)
async def update_budget(
    budget_id: str, data: BudgetCreate, repo: BudgetRepository = Depends(get_budget_repository)
) -> Budget:
    """Update a budget."""
    result = repo.update(Budget(**data.model_dump(), id=budget_id, user_id=repo.user_id))
    if result is None:
        raise HTTPException(status_code=404, detail="Budget not found")
    return result


@router.delete("/{budget_id}", status_code=204)
async def delete_budget(budget_id: str, repo: BudgetRepository = Depends(get_budget_repository)) -> Response:
    """Delete a budget."""
    if not repo.delete(budget_id):
        raise HTTPException(status_code=404, detail="Budget not found")
    return Response(status_code=204)
