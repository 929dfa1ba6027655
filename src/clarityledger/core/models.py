"""Core data models for ClarityLedger."""

import datetime
from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class TransactionType(str, Enum):
    """Direction of a transaction."""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class RecurringFrequency(str, Enum):
    """How often a recurring template comes due."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class StoredModel(BaseModel):
    """Base for records persisted as JSON with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict:
        """Serialize to the stored JSON shape."""
        return self.model_dump(mode="json", by_alias=True)


class TransactionCreate(StoredModel):
    """Transaction data as entered by the user, before it gets an id."""

    description: str
    amount: float = Field(gt=0)
    type: TransactionType
    category: str
    date: date
    tags: list[str] = Field(default_factory=list)

    @field_validator("description", "category")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject blank text."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class Transaction(TransactionCreate):
    """Stored transaction."""

    id: str
    user_id: str
    # Stored data from older backups may carry zero amounts.
    amount: float = Field(ge=0)


class BudgetCreate(StoredModel):
    """Budget data as entered by the user."""

    category: str
    target_amount: float = Field(gt=0)
    month_year: str = Field(pattern=r"^\d{4}-\d{2}$")
    allow_rollover: bool = False

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        """Reject blank categories."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("allow_rollover", mode="before")
    @classmethod
    def default_rollover(cls, v):
        """Treat a missing/null rollover flag as disabled."""
        return False if v is None else v


class Budget(BudgetCreate):
    """Stored budget for one category and month."""

    id: str
    user_id: str


class BudgetWithDetails(Budget):
    """Budget projected for a month; never persisted."""

    spent_amount: float = 0.0
    rollover_amount: float = 0.0
    effective_target_amount: float = 0.0


class RecurringTransactionCreate(StoredModel):
    """Recurring template data as entered by the user."""

    description: str
    amount: float = Field(gt=0)
    type: TransactionType
    category: str
    frequency: RecurringFrequency
    start_date: date
    end_date: date | None = None
    tags: list[str] = Field(default_factory=list)


class RecurringTransaction(RecurringTransactionCreate):
    """Stored recurring template."""

    id: str
    user_id: str
    next_due_date: date
    last_generated_date: date | None = None
    is_active: bool = True


class ProcessResult(BaseModel):
    """Outcome of one recurring processing run."""

    created_count: int = 0
    errors: list[str] = Field(default_factory=list)


class OCRResult(BaseModel):
    """Fields guessed from recognized receipt text."""

    text: str
    amount: float | None = None
    date: datetime.date | None = None
    suggested_category: str | None = None


class AIExtractionResult(BaseModel):
    """Fields returned by the AI service, or the reason there are none."""

    model_config = ConfigDict(extra="ignore")

    amount: float | None = None
    date: str | None = None
    vendor: str | None = None
    category: str | None = None
    currency: str | None = None
    raw_response: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FinancialTipResult(BaseModel):
    """A short piece of advice, or the reason there is none."""

    tip: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
