from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TypeVar

from finexport.models.export import Account, Category, DateRange, ResolvedTransaction, Transaction
from finexport.services.formatting import UNKNOWN_LABEL, tx_day

PLACEHOLDER_CATEGORY_COLOR = "#9CA3AF"

EntityT = TypeVar("EntityT", Account, Category)


@dataclass
class ResolveStats:
    missing_accounts: int = 0
    missing_categories: int = 0


def filter_transactions(transactions: Iterable[Transaction], date_range: DateRange) -> list[Transaction]:
    if not date_range.is_ordered:
        return []
    start = date_range.from_date
    end = date_range.to_date
    return [t for t in transactions if start <= tx_day(t.date) <= end]


def build_index(entities: Iterable[EntityT]) -> dict[str, EntityT]:
    # first entity wins on duplicate ids
    index: dict[str, EntityT] = {}
    for entity in entities:
        index.setdefault(entity.id, entity)
    return index


def resolve_transaction(
    tx: Transaction,
    accounts: Mapping[str, Account],
    categories: Mapping[str, Category],
    stats: ResolveStats | None = None,
) -> ResolvedTransaction:
    account = accounts.get(tx.account_id)
    category = categories.get(tx.category_id)
    if stats is not None:
        stats.missing_accounts += account is None
        stats.missing_categories += category is None

    return ResolvedTransaction(
        id=tx.id,
        date=tx.date,
        description=tx.description,
        type=tx.type,
        amount=tx.amount,
        account_id=tx.account_id,
        account_name=account.name if account else UNKNOWN_LABEL,
        account_type=account.type if account else None,
        category_id=tx.category_id,
        category_name=category.name if category else UNKNOWN_LABEL,
        category_color=(category.color or PLACEHOLDER_CATEGORY_COLOR) if category else PLACEHOLDER_CATEGORY_COLOR,
    )


def resolve_transactions(
    transactions: Sequence[Transaction],
    accounts: Iterable[Account],
    categories: Iterable[Category],
    stats: ResolveStats | None = None,
) -> list[ResolvedTransaction]:
    account_index = build_index(accounts)
    category_index = build_index(categories)
    return [resolve_transaction(t, account_index, category_index, stats) for t in transactions]
