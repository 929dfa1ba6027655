#!/usr/bin/env python3
"""Export or restore a ClarityLedger JSON backup."""

import argparse
import json
import sys
from datetime import date
from pathlib import Path

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Module imports after path manipulation (required by E402)
from src.clarityledger.core.config import AppConfig  # noqa: E402
from src.clarityledger.core.database import DatabaseManager  # noqa: E402
from src.clarityledger.data.backup import BackupService  # noqa: E402
from src.clarityledger.data.store import JSONStore  # noqa: E402
from src.clarityledger.services.budgets import BudgetRepository  # noqa: E402
from src.clarityledger.services.recurring import RecurringTransactionEngine  # noqa: E402
from src.clarityledger.services.transactions import TransactionRepository  # noqa: E402


def build_service(session, config: AppConfig) -> BackupService:
    store = JSONStore(session)
    transactions = TransactionRepository(store, config.user_id)
    return BackupService(
        store,
        transactions,
        BudgetRepository(store, config.user_id),
        RecurringTransactionEngine(store, transactions, config.user_id, config.recurring.min_interval_hours),
        config,
    )


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    subparsers = parser.add_subparsers(dest="command", required=True)
    export_parser = subparsers.add_parser("export", help="Write a backup file")
    export_parser.add_argument("--output", type=Path, help="Backup file path")
    import_parser = subparsers.add_parser("import", help="Replace all data with a backup file")
    import_parser.add_argument("file", type=Path)
    args = parser.parse_args()

    config = AppConfig()
    config.ensure_dirs()
    db_manager = DatabaseManager(config)
    db_manager.create_tables()

    with db_manager.get_session() as session:
        service = build_service(session, config)

        if args.command == "export":
            output = args.output or config.export_dir / f"clarityLedger_backup_{date.today().isoformat()}.json"
            output.write_text(json.dumps(service.export_backup(), indent=2, ensure_ascii=False), encoding="utf-8")
            print(f"✅ Backup written to {output}")
            return 0

        try:
            data = json.loads(args.file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            print(f"❌ Could not read {args.file}: {e}")
            return 1

        violations = service.import_backup(data)
        if violations:
            print(f"❌ Backup rejected, nothing was imported ({len(violations)} problems):")
            for violation in violations:
                print(f"    {violation.path}: {violation.message}")
            return 1

        print("✅ Backup imported")
        return 0


if __name__ == "__main__":
    sys.exit(main())
