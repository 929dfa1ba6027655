#!/usr/bin/env python3
"""Run ClarityLedger in development mode with sample data."""

import os
import subprocess
import sys
from datetime import date
from pathlib import Path

from dateutil.relativedelta import relativedelta


def setup_dev_database():
    """Seed the development database with sample data if it is empty."""
    from src.clarityledger.core.config import AppConfig
    from src.clarityledger.core.database import DatabaseManager
    from src.clarityledger.core.dates import month_key
    from src.clarityledger.core.models import (
        BudgetCreate,
        RecurringFrequency,
        RecurringTransactionCreate,
        TransactionCreate,
        TransactionType,
    )
    from src.clarityledger.data.store import JSONStore
    from src.clarityledger.services.budgets import BudgetRepository
    from src.clarityledger.services.recurring import RecurringTransactionEngine
    from src.clarityledger.services.transactions import TransactionRepository

    config = AppConfig()
    config.ensure_dirs()
    db_manager = DatabaseManager(config)
    db_manager.create_tables()

    with db_manager.get_session() as session:
        store = JSONStore(session)
        transactions = TransactionRepository(store, config.user_id)

        existing = transactions.get_all()
        if existing:
            print(f"✅ Database has {len(existing)} transactions")
            return

        print("🔄 Setting up sample data...")
        today = date.today()
        last_month = today - relativedelta(months=1)
        samples = [
            ("Salary", 3200.0, TransactionType.INCOME, "Salary", last_month.replace(day=1)),
            ("Supermarket", 86.4, TransactionType.EXPENSE, "Groceries", last_month.replace(day=5)),
            ("Electricity bill", 54.1, TransactionType.EXPENSE, "Utilities", last_month.replace(day=12)),
            ("Salary", 3200.0, TransactionType.INCOME, "Salary", today.replace(day=1)),
            ("Farmers market", 42.0, TransactionType.EXPENSE, "Groceries", today.replace(day=1)),
        ]
        for description, amount, txn_type, category, txn_date in samples:
            transactions.add(
                TransactionCreate(
                    description=description, amount=amount, type=txn_type, category=category, date=txn_date
                )
            )

        budgets = BudgetRepository(store, config.user_id)
        for month in (last_month, today):
            budgets.add(
                BudgetCreate(category="Groceries", target_amount=300.0, month_year=month_key(month), allow_rollover=True)
            )

        recurring = RecurringTransactionEngine(store, transactions, config.user_id)
        recurring.add(
            RecurringTransactionCreate(
                description="Rent",
                amount=1100.0,
                type=TransactionType.EXPENSE,
                category="Housing",
                frequency=RecurringFrequency.MONTHLY,
                start_date=today.replace(day=1) + relativedelta(months=1),
            )
        )
        print(f"✅ Created {len(samples)} sample transactions, 2 budgets and 1 recurring template")


def main():
    """Run ClarityLedger in development mode."""
    os.environ.setdefault("CLARITY_DB_URL", "sqlite:///data/clarityledger_dev.db")
    os.environ.setdefault("CLARITY_DEV_PORT", "8001")
    os.environ.setdefault("CLARITY_HOST", "0.0.0.0")

    app_dir = Path(__file__).parent

    print("📒 Starting ClarityLedger in DEVELOPMENT mode")
    print(f"📊 Database: {os.environ['CLARITY_DB_URL']}")

    setup_dev_database()

    port = os.environ.get("CLARITY_DEV_PORT", "8001")
    host = os.environ.get("CLARITY_HOST", "0.0.0.0")
    print(f"📚 API docs available at: http://localhost:{port}/docs")
    print("-" * 50)

    try:
        subprocess.run(
            [sys.executable, "-m", "uvicorn", "main:app", "--reload", "--host", host, "--port", port],
            cwd=app_dir,
        )
    except KeyboardInterrupt:
        print("\n👋 ClarityLedger development mode stopped.")


if __name__ == "__main__":
    main()
