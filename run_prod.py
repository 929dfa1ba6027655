#!/usr/bin/env python3
"""Run ClarityLedger in production mode.

The database is prepared and recurring transactions are caught up before
the server starts, so a failure there stops the launch.
"""

import os
import subprocess
import sys
from pathlib import Path


def prepare_production_database(config=None) -> dict[str, int]:
    """Create tables, process due recurring transactions and report stored counts."""
    from main import run_recurring_on_startup
    from src.clarityledger.core.config import AppConfig
    from src.clarityledger.core.database import DatabaseManager
    from src.clarityledger.data.store import JSONStore
    from src.clarityledger.services.budgets import BudgetRepository
    from src.clarityledger.services.recurring import RecurringTransactionEngine
    from src.clarityledger.services.transactions import TransactionRepository

    config = config or AppConfig()
    config.ensure_dirs()
    db_manager = DatabaseManager(config)
    db_manager.create_tables()

    run_recurring_on_startup(config, db_manager)

    with db_manager.get_session() as session:
        store = JSONStore(session)
        transactions = TransactionRepository(store, config.user_id)
        return {
            "transactions": len(transactions.get_all()),
            "budgets": len(BudgetRepository(store, config.user_id).get_all()),
            "recurring": len(RecurringTransactionEngine(store, transactions, config.user_id).get_all()),
        }


def main() -> None:
    """Run ClarityLedger in production mode."""
    os.environ.setdefault("CLARITY_DB_URL", "sqlite:///data/clarityledger.db")
    os.environ.setdefault("CLARITY_PROD_PORT", "8000")
    os.environ.setdefault("CLARITY_HOST", "0.0.0.0")

    app_dir = Path(__file__).parent

    print("📒 Starting ClarityLedger in PRODUCTION mode")
    print(f"📊 Database: {os.environ['CLARITY_DB_URL']}")

    counts = prepare_production_database()
    print(
        f"✅ {counts['transactions']} transactions, {counts['budgets']} budgets, "
        f"{counts['recurring']} recurring templates"
    )

    port = os.environ["CLARITY_PROD_PORT"]
    host = os.environ["CLARITY_HOST"]
    print(f"📚 API docs available at: http://localhost:{port}/docs")
    print("-" * 50)

    try:
        subprocess.run(
            [sys.executable, "-m", "uvicorn", "main:app", "--host", host, "--port", port, "--no-access-log"],
            cwd=app_dir,
        )
    except KeyboardInterrupt:
        print("\n👋 ClarityLedger production mode stopped.")


if __name__ == "__main__":
    main()
