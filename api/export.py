"""API routes for data export, backup and restore."""

from datetime import date
from typing import Any

from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile
from fastapi.responses import JSONResponse, Response

from api.dependencies import get_backup_service, get_csv_processor
from api.models import BackupImportResponse, CSVImportResponse
from src.clarityledger.data.backup import BackupService
from src.clarityledger.data.csv_processor import CSVProcessor

router = APIRouter(prefix="/export", tags=["export"])


@router.get("/csv")
async def export_csv(processor: CSVProcessor = Depends(get_csv_processor)) -> Response:
    """Export all transactions as CSV."""
    content = processor.export_csv()
    filename = f"clarityLedger_transactions_{date.today().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.post("/csv/import", response_model=CSVImportResponse)
async def import_csv(
    file: UploadFile = File(...), processor: CSVProcessor = Depends(get_csv_processor)
) -> CSVImportResponse:
    """Add transactions from an exported CSV file, skipping ids already stored."""
    if not file.filename or not file.filename.endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files are allowed")

    content = (await file.read()).decode("utf-8-sig")
    transactions, errors = processor.import_csv(content)
    if not transactions and errors:
        raise HTTPException(status_code=400, detail=f"No valid transactions found in CSV: {errors[0]}")

    imported, duplicates = processor.save_transactions(transactions)
    return CSVImportResponse(imported=imported, duplicates=duplicates, errors=errors)


@router.get("/backup")
async def export_backup(service: BackupService = Depends(get_backup_service)) -> JSONResponse:
    """Download every collection and the settings as one JSON document."""
    filename = f"clarityLedger_backup_{date.today().isoformat()}.json"
    return JSONResponse(
        content=service.export_backup(),
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.post("/backup", response_model=BackupImportResponse)
async def import_backup(
    data: Any = Body(...), service: BackupService = Depends(get_backup_service)
) -> BackupImportResponse:
    """Replace all data with a backup; nothing changes if any record is invalid."""
    violations = service.import_backup(data)
    if violations:
        raise HTTPException(status_code=400, detail=[v.model_dump() for v in violations])
    return BackupImportResponse(success=True)
