"""Dependency injection for API routes."""

from collections.abc import Generator

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from src.clarityledger.core.config import AppConfig
from src.clarityledger.core.database import DatabaseManager
from src.clarityledger.data.backup import BackupService
from src.clarityledger.data.csv_processor import CSVProcessor
from src.clarityledger.data.store import JSONStore
from src.clarityledger.ocr.ai_extraction import AIExtractionAdapter
from src.clarityledger.ocr.worker import OCRWorker
from src.clarityledger.services.budgets import BudgetRepository
from src.clarityledger.services.financial_tip import FinancialTipAdapter
from src.clarityledger.services.recurring import RecurringTransactionEngine
from src.clarityledger.services.transactions import TransactionRepository


def get_config(request: Request) -> AppConfig:
    """Get application configuration from app state."""
    return request.app.state.config


def get_db_manager(request: Request) -> DatabaseManager:
    """Get database manager from app state."""
    return request.app.state.db_manager


def get_db_session(request: Request) -> Generator:
    """Get database session."""
    db_manager = get_db_manager(request)
    with db_manager.get_session() as session:
        yield session


def get_store(db: Session = Depends(get_db_session)) -> JSONStore:
    return JSONStore(db)


def get_transaction_repository(
    store: JSONStore = Depends(get_store), config: AppConfig = Depends(get_config)
) -> TransactionRepository:
    return TransactionRepository(store, config.user_id)


def get_budget_repository(
    store: JSONStore = Depends(get_store), config: AppConfig = Depends(get_config)
) -> BudgetRepository:
    return BudgetRepository(store, config.user_id)


def get_recurring_engine(
    store: JSONStore = Depends(get_store),
    transactions: TransactionRepository = Depends(get_transaction_repository),
    config: AppConfig = Depends(get_config),
) -> RecurringTransactionEngine:
    return RecurringTransactionEngine(store, transactions, config.user_id, config.recurring.min_interval_hours)


def get_csv_processor(transactions: TransactionRepository = Depends(get_transaction_repository)) -> CSVProcessor:
    return CSVProcessor(transactions)


def get_backup_service(
    store: JSONStore = Depends(get_store),
    transactions: TransactionRepository = Depends(get_transaction_repository),
    budgets: BudgetRepository = Depends(get_budget_repository),
    recurring: RecurringTransactionEngine = Depends(get_recurring_engine),
    config: AppConfig = Depends(get_config),
) -> BackupService:
    return BackupService(store, transactions, budgets, recurring, config)


def get_ai_adapter(request: Request, backup: BackupService = Depends(get_backup_service)) -> AIExtractionAdapter:
    """AI adapter configured from stored settings, falling back to app config."""
    return AIExtractionAdapter(backup.ai_config(), session=getattr(request.app.state, "http_session", None))


def get_tip_adapter(request: Request, backup: BackupService = Depends(get_backup_service)) -> FinancialTipAdapter:
    return FinancialTipAdapter(backup.ai_config(), session=getattr(request.app.state, "http_session", None))


def get_ocr_worker(request: Request) -> OCRWorker:
    """Get the OCR worker; 503 when no recognition engine is configured."""
    worker = getattr(request.app.state, "ocr_worker", None)
    if worker is None:
        raise HTTPException(status_code=503, detail="No OCR engine configured")
    return worker
