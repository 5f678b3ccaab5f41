from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

CENT = Decimal("0.01")


class TransactionType(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"
    TRANSFER = "transfer"


class AccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"


class ExportFormat(str, Enum):
    TABULAR = "tabular"
    REPORT = "report"

    @classmethod
    def parse(cls, value: Any) -> "ExportFormat":
        """Accept the enum itself, its value or name, or the csv/pdf aliases."""
        if isinstance(value, cls):
            return value
        raw = str(value or "").strip().lower()
        aliases = {"csv": cls.TABULAR, "pdf": cls.REPORT}
        if raw in aliases:
            return aliases[raw]
        for member in cls:
            if raw in (member.value, member.name.lower()):
                return member
        raise ValueError(f"Unsupported export format: {value!r}")


def to_money(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)) and not isinstance(value, bool):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError("amount must be a decimal number") from None
    else:
        raise ValueError("amount must be a decimal number")
    if not amount.is_finite():
        raise ValueError("amount must be finite")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


class Transaction(BaseModel):
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    amount: Decimal
    description: str = ""
    type: TransactionType
    date: datetime
    account_id: str = Field(validation_alias=AliasChoices("account_id", "accountId"))
    category_id: str = Field(validation_alias=AliasChoices("category_id", "categoryId"))

    @field_validator("amount", mode="before")
    @classmethod
    def _money(cls, value: Any) -> Decimal:
        return to_money(value)

    @field_validator("date", mode="before")
    @classmethod
    def _date_as_timestamp(cls, value: Any) -> Any:
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime.combine(value, time.min, tzinfo=timezone.utc)
        return value


class Account(BaseModel):
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str
    type: AccountType
    balance: Decimal = Decimal("0.00")

    @field_validator("balance", mode="before")
    @classmethod
    def _money(cls, value: Any) -> Decimal:
        return to_money(value)


class Category(BaseModel):
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str
    color: str = ""
    icon: str = ""


class DateRange(BaseModel):
    """Inclusive calendar range. ``from_date > to_date`` is allowed and matches nothing."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_date: date = Field(alias="from")
    to_date: date = Field(alias="to")

    @field_validator("from_date", "to_date", mode="before")
    @classmethod
    def _calendar_day(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone(timezone.utc)
            return value.date()
        return value

    @property
    def is_ordered(self) -> bool:
        return self.from_date <= self.to_date


class ExportRequest(BaseModel):
    # format stays a raw string here; the orchestrator owns the enum check
    model_config = ConfigDict(frozen=True)

    format: str
    range: DateRange


class ResolvedTransaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    date: datetime
    description: str
    type: TransactionType
    amount: Decimal
    account_id: str
    account_name: str
    account_type: AccountType | None = None
    category_id: str
    category_name: str
    category_color: str


@dataclass(frozen=True)
class ExportDocument:
    content: bytes
    media_type: str
    filename: str
    row_count: int


class PreviewPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_date: date = Field(alias="from")
    to_date: date = Field(alias="to")
    transactions: list[Transaction] = Field(default_factory=list)
    accounts: list[Account] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)


class ExportPayload(PreviewPayload):
    format: str = "csv"
