"""JSON backup export and validated, all-or-nothing restore."""

import json
import logging
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, model_validator

from ..core.config import DEFAULT_OCR_OPENROUTER_MODEL, DEFAULT_OPENROUTER_MODEL, AIConfig, AppConfig
from ..core.ids import generate_id
from ..core.models import (
    Budget,
    BudgetCreate,
    RecurringTransaction,
    RecurringTransactionCreate,
    StoredModel,
    Transaction,
    TransactionCreate,
)
from ..services.budgets import BudgetRepository
from ..services.recurring import RecurringTransactionEngine
from ..services.transactions import TransactionRepository
from .store import SETTINGS_KEY, JSONStore

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0.2"

Language = Literal["en", "zh-TW"]
CurrencyCode = Literal["USD", "EUR", "JPY", "GBP", "AUD", "CAD", "CNY", "TWD", "HKD"]


class Violation(BaseModel):
    """One reason a backup document was rejected."""

    path: str
    message: str


class AppSettings(StoredModel):
    """User preferences carried in backups."""

    api_key: str = ""
    model_name: str = DEFAULT_OPENROUTER_MODEL
    ocr_model_name: str | None = None
    language: Language = "en"
    dark_mode: bool = Field(default=False, strict=True)
    selected_currency: CurrencyCode = "USD"
    custom_income_categories: list[str] = Field(default_factory=list)
    custom_expense_categories: list[str] = Field(default_factory=list)


class BackupSettings(AppSettings):
    """Settings block as it must appear in a backup; every field but the OCR model is required."""

    api_key: str
    model_name: str
    language: Language
    dark_mode: bool = Field(strict=True)
    selected_currency: CurrencyCode
    custom_income_categories: list[str]
    custom_expense_categories: list[str]


class BackupTransaction(TransactionCreate):
    id: str | None = None
    user_id: str | None = None
    amount: float = Field(ge=0)


class BackupBudget(BudgetCreate):
    id: str | None = None
    user_id: str | None = None


class BackupRecurringTransaction(RecurringTransactionCreate):
    id: str | None = None
    user_id: str | None = None
    next_due_date: date
    last_generated_date: date | None = None
    is_active: bool | None = None


class AppBackup(StoredModel):
    """Whole backup document."""

    version: Literal["1.0.0", "1.0.1", "1.0.2"]
    settings: BackupSettings
    transactions: list[BackupTransaction]
    budgets: list[BackupBudget]
    recurring_transactions: list[BackupRecurringTransaction] | None = None

    @model_validator(mode="before")
    @classmethod
    def drop_unversioned_recurring(cls, data: Any) -> Any:
        """Recurring templates are only read from the latest format."""
        if isinstance(data, dict) and data.get("version") != BACKUP_VERSION:
            data = {k: v for k, v in data.items() if k not in ("recurringTransactions", "recurring_transactions")}
        return data


def _violations(error: ValidationError) -> list[Violation]:
    return [
        Violation(path=".".join(str(part) for part in err["loc"]), message=err["msg"]) for err in error.errors()
    ]


def decode_backup(data: Any) -> tuple[AppBackup | None, list[Violation]]:
    """Validate a parsed backup document field by field.

    Returns the decoded backup, or ``None`` with every violation found.
    """
    if not isinstance(data, dict):
        return None, [Violation(path="", message="Backup must be a JSON object")]
    try:
        return AppBackup.model_validate(data), []
    except ValidationError as e:
        violations = _violations(e)
        logger.error("Backup validation failed with %d violations", len(violations))
        return None, violations


def decode_backup_json(content: str | bytes) -> tuple[AppBackup | None, list[Violation]]:
    try:
        data = json.loads(content)
    except ValueError as e:
        return None, [Violation(path="", message=f"Invalid JSON: {e}")]
    return decode_backup(data)


class BackupService:
    """Exports and restores every stored collection plus the settings block."""

    def __init__(
        self,
        store: JSONStore,
        transactions: TransactionRepository,
        budgets: BudgetRepository,
        recurring: RecurringTransactionEngine,
        config: AppConfig,
    ):
        self.store = store
        self.transactions = transactions
        self.budgets = budgets
        self.recurring = recurring
        self.config = config

    def get_settings(self) -> AppSettings:
        """Stored settings, falling back to configuration defaults."""
        stored = self.store.get_value(SETTINGS_KEY)
        if isinstance(stored, dict):
            try:
                return AppSettings.model_validate(stored)
            except ValidationError as e:
                logger.warning("Ignoring invalid stored settings: %s", e)

        return AppSettings(
            api_key=self.config.ai.api_key or "",
            model_name=self.config.ai.model or DEFAULT_OPENROUTER_MODEL,
            ocr_model_name=self.config.ai.ocr_model or None,
            language=self.config.ai.language,
            selected_currency=self.config.default_currency,
        )

    def ai_config(self) -> AIConfig:
        """AI settings from stored settings, falling back to app config."""
        settings = self.get_settings()
        return self.config.ai.model_copy(
            update={
                "api_key": settings.api_key or self.config.ai.api_key,
                "model": settings.model_name or self.config.ai.model,
                "ocr_model": settings.ocr_model_name or self.config.ai.ocr_model,
                "language": settings.language,
            }
        )

    def save_settings(self, settings: AppSettings) -> None:
        self.store.set_value(SETTINGS_KEY, settings.to_record())

    def export_backup(self) -> dict[str, Any]:
        """Backup document at the current format version."""
        settings = self.get_settings()
        if not settings.ocr_model_name:
            settings = settings.model_copy(update={"ocr_model_name": DEFAULT_OCR_OPENROUTER_MODEL})
        return {
            "version": BACKUP_VERSION,
            "settings": settings.to_record(),
            "transactions": [t.to_record() for t in self.transactions.get_all()],
            "budgets": [b.to_record() for b in self.budgets.get_all()],
            "recurringTransactions": [r.to_record() for r in self.recurring.get_all()],
        }

    def import_backup(self, data: Any) -> list[Violation]:
        """Replace all stored data with the backup's contents.

        Nothing is written unless the whole document is valid. Returns the
        violations (empty on success).
        """
        backup, violations = decode_backup(data)
        if backup is None:
            return violations

        user_id = self.config.user_id
        settings = AppSettings(**backup.settings.model_dump())
        transactions = [
            Transaction(**t.model_dump(exclude={"id", "user_id"}), id=t.id or generate_id("txn"), user_id=user_id)
            for t in backup.transactions
        ]
        budgets = [
            Budget(**b.model_dump(exclude={"id", "user_id"}), id=b.id or generate_id("budget"), user_id=user_id)
            for b in backup.budgets
        ]
        recurring = [
            RecurringTransaction(
                **r.model_dump(exclude={"id", "user_id", "is_active"}),
                id=r.id or generate_id("rectxn"),
                user_id=user_id,
                is_active=True if r.is_active is None else r.is_active,
            )
            for r in backup.recurring_transactions or []
        ]

        self.save_settings(settings)
        self.transactions.replace_all(transactions)
        self.budgets.replace_all(budgets)
        if backup.version == BACKUP_VERSION and backup.recurring_transactions is not None:
            self.recurring.replace_all(recurring)
        else:
            self.store.remove(self.recurring.key)

        logger.info(
            "Imported backup %s: %d transactions, %d budgets, %d recurring transactions",
            backup.version,
            len(transactions),
            len(budgets),
            len(recurring),
        )
        return []
