"""FastAPI application entry point."""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

import uvicorn
from fastapi import FastAPI, Request

from src.clarityledger.core.config import AppConfig
from src.clarityledger.core.database import DatabaseManager
from src.clarityledger.data.store import JSONStore
from src.clarityledger.ocr.worker import EngineFactory, OCRWorker
from src.clarityledger.services.recurring import RecurringTransactionEngine
from src.clarityledger.services.transactions import TransactionRepository

logger = logging.getLogger(__name__)


def run_recurring_on_startup(config: AppConfig, db_manager: DatabaseManager) -> None:
    """Catch up recurring transactions unless they were processed recently."""
    with db_manager.get_session() as session:
        store = JSONStore(session)
        engine = RecurringTransactionEngine(
            store,
            TransactionRepository(store, config.user_id),
            config.user_id,
            config.recurring.min_interval_hours,
        )
        result = engine.run_if_due(datetime.now())
    if result is not None and result.created_count:
        logger.info("Generated %d recurring transactions on startup", result.created_count)


def create_app(config: AppConfig | None = None, ocr_engine_factory: EngineFactory | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or AppConfig()
    config.ensure_dirs()

    db_manager = DatabaseManager(config)
    db_manager.create_tables()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        run_recurring_on_startup(config, db_manager)
        yield
        if app.state.ocr_worker is not None:
            app.state.ocr_worker.release()

    app = FastAPI(
        title="ClarityLedger",
        description="Local-first personal finance tracker",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store in app state
    app.state.config = config
    app.state.db_manager = db_manager
    app.state.ocr_worker = OCRWorker(ocr_engine_factory) if ocr_engine_factory else None

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        if process_time > 0.1:
            logger.warning("SLOW REQUEST: %s %s took %.3fs", request.method, request.url.path, process_time)

        return response

    # Include API routes
    from api.budgets import router as budgets_router
    from api.export import router as export_router
    from api.ocr import router as ocr_router
    from api.recurring import router as recurring_router
    from api.reports import router as reports_router
    from api.settings import router as settings_router
    from api.transactions import router as transactions_router

    app.include_router(transactions_router, prefix="/api")
    app.include_router(budgets_router, prefix="/api")
    app.include_router(recurring_router, prefix="/api")
    app.include_router(ocr_router, prefix="/api")
    app.include_router(reports_router, prefix="/api")
    app.include_router(export_router, prefix="/api")
    app.include_router(settings_router, prefix="/api")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
