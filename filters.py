from dataclasses import dataclass
from typing import Iterable, Optional

from models import TransactionType
from periods import Period


@dataclass
class TransactionFilters:
    type: Optional[TransactionType] = None
    category_id: Optional[str] = None
    sub_category_id: Optional[str] = None
    account_id: Optional[str] = None

    def is_empty(self) -> bool:
        return not (
            self.type or self.category_id or self.sub_category_id or self.account_id
        )


def in_period(transactions: Iterable, period: Period) -> list:
    return [txn for txn in transactions if period.contains(txn.date)]


def newest_first(transactions: Iterable) -> list:
    # sorted() is stable with reverse=True, so same-day rows keep input order
    return sorted(transactions, key=lambda txn: txn.date, reverse=True)


def matches(txn, filters: TransactionFilters) -> bool:
    if filters.type and txn.type != filters.type:
        return False
    if filters.category_id and txn.category_id != filters.category_id:
        return False
    if filters.sub_category_id and txn.sub_category_id != filters.sub_category_id:
        return False
    if filters.account_id and filters.account_id not in (
        txn.account_id,
        txn.to_account_id,
    ):
        return False
    return True


def apply_filters(
    period_transactions: Iterable, filters: Optional[TransactionFilters] = None
) -> list:
    """Sort newest first, then keep rows matching every set filter."""
    ordered = newest_first(period_transactions)
    if filters is None or filters.is_empty():
        return ordered
    return [txn for txn in ordered if matches(txn, filters)]
