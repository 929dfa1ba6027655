"""CSV import and export functionality."""

import csv
import io
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from ..core.models import Transaction, TransactionType
from ..services.transactions import TransactionRepository

CSV_HEADER = ["ID", "Date", "Description", "Amount", "Type", "Category", "Tags"]
TAG_SEPARATOR = ";"


def _format_amount(amount: float) -> str:
    # 100.0 -> "100", 48.6 -> "48.6"
    return str(int(amount)) if float(amount).is_integer() else repr(float(amount))


def transactions_to_csv(transactions: list[Transaction]) -> str:
    """One row per transaction; tags joined with ``;`` in a single column."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for t in transactions:
        writer.writerow(
            [
                t.id,
                t.date.isoformat(),
                t.description,
                _format_amount(t.amount),
                t.type.value,
                t.category,
                TAG_SEPARATOR.join(t.tags),
            ]
        )
    return buffer.getvalue().rstrip("\n")


class CSVProcessor:
    """Handle CSV import and export operations."""

    def __init__(self, transactions: TransactionRepository):
        self.transactions = transactions

    def export_csv(self, file_path: Path | None = None) -> str:
        """Export all stored transactions; also written to ``file_path`` when given."""
        content = transactions_to_csv(self.transactions.get_all())
        if file_path is not None:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding="utf-8")
        return content

    def import_csv(self, content: str) -> tuple[list[Transaction], list[str]]:
        """Parse exported CSV content.

        Returns:
            Tuple of (parsed_transactions, error_messages)
        """
        transactions = []
        errors = []

        try:
            df = pd.read_csv(io.StringIO(content), dtype=str, keep_default_na=False)
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            return transactions, [f"Failed to read CSV content: {e}"]

        missing = [column for column in CSV_HEADER if column not in df.columns]
        if missing:
            return transactions, [f"Missing columns: {', '.join(missing)}"]

        for idx, row in df.iterrows():
            try:
                transactions.append(self._parse_row(row))
            except ValueError as e:
                errors.append(f"Row {idx + 1}: {e}")

        return transactions, errors

    def _parse_row(self, row: Any) -> Transaction:
        tags = [tag for tag in row["Tags"].split(TAG_SEPARATOR) if tag]
        return Transaction(
            id=row["ID"],
            user_id=self.transactions.user_id,
            date=self._parse_date(row["Date"]),
            description=row["Description"],
            amount=float(row["Amount"]),
            type=TransactionType(row["Type"].strip().upper()),
            category=row["Category"],
            tags=tags,
        )

    def _parse_date(self, date_str: str) -> date:
        date_str = date_str.strip()
        for fmt in ["%Y-%m-%d", "%Y/%m/%d"]:
            try:
                return datetime.strptime(date_str, fmt).date()
            except ValueError:
                continue
        raise ValueError(f"Could not parse date: {date_str}")

    def save_transactions(self, transactions: list[Transaction]) -> tuple[int, int]:
        """Append transactions whose id is not stored yet.

        Returns:
            Tuple of (new_count, duplicate_count)
        """
        known_ids = self.transactions.stored_ids()
        new = []
        for t in transactions:
            if t.id in known_ids:
                continue
            known_ids.add(t.id)
            new.append(t)
        if new:
            self.transactions.append(*new)
        return len(new), len(transactions) - len(new)
