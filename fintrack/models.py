"""Data models for fintrack."""

import re
from datetime import date
from datetime import date as date_type
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNCATEGORIZED = "Uncategorized"
ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


class TransactionType(str, Enum):
    """Direction of money flow."""

    INCOME = "income"
    EXPENSE = "expense"


class ReceiptCategory(str, Enum):
    """Closed set of categories the model may pick for a receipt."""

    FOOD = "Food"
    TRANSPORTATION = "Transportation"
    SHOPPING = "Shopping"
    BILLS = "Bills"
    HEALTHCARE = "Healthcare"
    ENTERTAINMENT = "Entertainment"
    TRAVEL = "Travel"
    EDUCATION = "Education"
    OTHER = "Other"


class TrendPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Transaction(BaseModel):
    """A single income or expense record owned by a user."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    type: TransactionType
    category: str | None = None
    amount: float
    description: str | None = None
    date: date
    created_at: str | None = None  # ISO format datetime


class TransactionCreate(BaseModel):
    """Transaction data for creation (before ID and owner assignment)."""

    type: TransactionType
    category: str | None = None
    amount: float = Field(gt=0)
    description: str | None = None
    date: date


class TransactionUpdate(BaseModel):
    """Partial update; only fields that were sent are written."""

    type: TransactionType | None = None
    category: str | None = None
    amount: float | None = Field(default=None, gt=0)
    description: str | None = None
    date: date_type | None = None  # aliased: the field name shadows the type


class TransactionList(BaseModel):
    transactions: list[Transaction]
    total_count: int


class DeleteResponse(BaseModel):
    count: int


class ExtractedReceiptData(BaseModel):
    """Structured data the model extracted from a receipt.

    Transient: only ``type``, ``category``, ``amount``, ``description`` and
    ``date`` survive into the stored transaction.
    """

    amount: float = Field(gt=0)
    date: str
    merchant: str = Field(min_length=1)
    category: str = Field(min_length=1)
    type: TransactionType
    description: str | None = None
    confidence: float = Field(ge=0, le=1)

    @field_validator("merchant", "category")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("date")
    @classmethod
    def _check_iso_date(cls, value: str) -> str:
        value = value.strip()
        message = f"'{value}' is not a YYYY-MM-DD calendar date"
        if not ISO_DATE.fullmatch(value):
            raise ValueError(message)
        try:
            date.fromisoformat(value)
        except ValueError:
            raise ValueError(message)
        return value

    @property
    def parsed_date(self) -> date:
        return date.fromisoformat(self.date)


class SavedTransactionInfo(BaseModel):
    id: int
    message: str


class ReceiptResponse(BaseModel):
    """Response after a receipt has been processed and saved."""

    success: bool = True
    data: ExtractedReceiptData
    transaction: SavedTransactionInfo


class CategoryTotal(BaseModel):
    category: str
    total: float


class MonthlyReport(BaseModel):
    month: str  # YYYY-MM
    label: str  # e.g. "March 2024"
    total_income: float
    total_expenses: float
    net_income: float
    transaction_count: int
    top_category: str | None = None
    top_category_amount: float = 0.0


class CategoryBreakdown(BaseModel):
    category: str
    amount: float
    transactions: int
    percentage: int


class TrendPoint(BaseModel):
    period: str
    income: float
    expenses: float
    transactions: int
    net: float


class FinancialSummary(BaseModel):
    total_income: float
    total_expenses: float
    net_income: float
    total_transactions: int
    avg_transaction: float


class DashboardOverview(BaseModel):
    month: str  # YYYY-MM
    income: float
    expenses: float
    balance: float
    recent_transactions: list[Transaction]


class SettingsResponse(BaseModel):
    """Current settings response."""

    llm_model: str
    has_gemini_key: bool
