"""Display formatting shared by the CSV and PDF renderers.

Sign convention for amounts, used by both documents: income is positive,
expense is negative, and a transfer keeps the sign it was stored with.
"""

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from finexport.models.export import CENT, AccountType, TransactionType

UNKNOWN_LABEL = "Unknown"

TRANSACTION_TYPE_LABELS = {
    TransactionType.EXPENSE: "Expense",
    TransactionType.INCOME: "Income",
    TransactionType.TRANSFER: "Transfer",
}

ACCOUNT_TYPE_LABELS = {
    AccountType.CHECKING: "Checking",
    AccountType.SAVINGS: "Savings",
    AccountType.CREDIT: "Credit",
}


def signed_amount(tx_type: TransactionType, amount: Decimal) -> Decimal:
    if tx_type == TransactionType.INCOME:
        return abs(amount)
    if tx_type == TransactionType.EXPENSE:
        return -abs(amount)
    return amount


def format_amount(value: Decimal, grouping: bool = False) -> str:
    amount = Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    if amount == 0:
        amount = abs(amount)
    return f"{amount:,.2f}" if grouping else f"{amount:.2f}"


def tx_day(value: datetime | date) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def format_date(value: datetime | date) -> str:
    return tx_day(value).isoformat()


def _label(table: dict, enum_cls: type, value: Any) -> str:
    if value is None:
        return UNKNOWN_LABEL
    try:
        member = enum_cls(value)
    except (ValueError, TypeError):
        return UNKNOWN_LABEL
    return table.get(member, UNKNOWN_LABEL)


def format_transaction_type(value: Any) -> str:
    return _label(TRANSACTION_TYPE_LABELS, TransactionType, value)


def format_account_type(value: Any) -> str:
    return _label(ACCOUNT_TYPE_LABELS, AccountType, value)


def safe_pdf_text(value: Any) -> str:
    text = str(value or "")
    text = text.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")
    try:
        text.encode("latin-1")
        return text
    except UnicodeEncodeError:
        return text.encode("latin-1", "replace").decode("latin-1")
