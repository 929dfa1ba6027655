"""API routes for recurring transaction templates."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Response

from api.dependencies import get_recurring_engine
from api.models import ActiveToggle, ProcessRequest
from src.clarityledger.core.models import ProcessResult, RecurringTransaction, RecurringTransactionCreate
from src.clarityledger.services.recurring import RecurringTransactionEngine

router = APIRouter(prefix="/recurring", tags=["recurring"])


@router.get("/", response_model=list[RecurringTransaction])
async def get_recurring_transactions(
    engine: RecurringTransactionEngine = Depends(get_recurring_engine),
) -> list[RecurringTransaction]:
    """Get all recurring templates, soonest due first."""
    return sorted(engine.get_all(), key=lambda t: t.next_due_date)


@router.post("/", response_model=RecurringTransaction, status_code=201)
async def create_recurring_transaction(
    data: RecurringTransactionCreate, engine: RecurringTransactionEngine = Depends(get_recurring_engine)
) -> RecurringTransaction:
    """Create a recurring template; its first occurrence is the start date."""
    return engine.add(data)


@router.put("/{template_id}", response_model=RecurringTransaction)
async def update_recurring_transaction(
    template_id: str,
    data: RecurringTransactionCreate,
    engine: RecurringTransactionEngine = Depends(get_recurring_engine),
) -> RecurringTransaction:
    """Update a template's details, keeping its generation state."""
    existing = engine.get(template_id)
    if existing is None:
        raise HTTPException(status_code=404, detail="Recurring transaction not found")

    result = engine.update(existing.model_copy(update=data.model_dump()))
    if result is None:
        raise HTTPException(status_code=404, detail="Recurring transaction not found")
    return result


@router.patch("/{template_id}/active", response_model=RecurringTransaction)
async def toggle_recurring_transaction(
    template_id: str, toggle: ActiveToggle, engine: RecurringTransactionEngine = Depends(get_recurring_engine)
) -> RecurringTransaction:
    """Activate or pause a template."""
    result = engine.set_active(template_id, toggle.is_active)
    if result is None:
        raise HTTPException(status_code=404, detail="Recurring transaction not found")
    return result


@router.delete("/{template_id}", status_code=204)
async def delete_recurring_transaction(
    template_id: str, engine: RecurringTransactionEngine = Depends(get_recurring_engine)
) -> Response:
    """Delete a template; transactions it generated are kept."""
    if not engine.delete(template_id):
        raise HTTPException(status_code=404, detail="Recurring transaction not found")
    return Response(status_code=204)


@router.post("/process", response_model=ProcessResult)
async def process_recurring_transactions(
    body: ProcessRequest | None = None, engine: RecurringTransactionEngine = Depends(get_recurring_engine)
) -> ProcessResult:
    """Generate every occurrence due on or before ``today`` (defaults to the current date)."""
    today = body.today if body and body.today else date.today()
    return engine.process_due(today)
