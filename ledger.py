"""Derived ledger figures computed from account, category and transaction records.

Every function here is pure: it takes already loaded records (ORM instances or
any object exposing the same attributes), never touches the database and
never raises on odd data. Amounts are integer cents, so all sums are exact.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Iterable, Optional, Sequence

from filters import in_period, newest_first
from models import TransactionType
from periods import Period

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
UNKNOWN_CATEGORY = "Unknown category"
UNKNOWN_SUB_CATEGORY = "Unknown sub category"


@dataclass(frozen=True)
class PeriodTotals:
    income_cents: int
    expense_cents: int
    count: int

    @property
    def net_cents(self) -> int:
        return self.income_cents - self.expense_cents


@dataclass(frozen=True)
class LedgerSummary:
    balances: dict[str, int]
    net_balance_cents: int
    income_cents: int
    expense_cents: int
    opening_balance_cents: int
    closing_balance_cents: int
    transaction_count: int
    carry_forward: bool


@dataclass
class BreakdownItem:
    category_id: str
    name: str
    icon: Optional[str]
    color: Optional[str]
    value_cents: int = 0
    percent: float = 0.0


@dataclass
class SubBreakdownItem:
    sub_category_id: str
    category_id: Optional[str]
    name: str
    value_cents: int = 0
    percent: float = 0.0


@dataclass
class TrendRow:
    month_key: str
    label: str
    values: dict[str, int] = field(default_factory=dict)

    @property
    def total_cents(self) -> int:
        return sum(self.values.values())


@dataclass(frozen=True)
class ExportRow:
    date: date
    amount_cents: int
    category: str
    note: str
    type: TransactionType


def signed_amount(txn) -> int:
    if txn.type == TransactionType.income:
        return txn.amount_cents
    if txn.type == TransactionType.expense:
        return -txn.amount_cents
    return 0


def account_balances(accounts: Iterable, transactions: Iterable) -> dict[str, int]:
    """All-time balance per account, seeded with each opening balance."""
    balances: dict[str, int] = {
        account.id: int(account.opening_balance_cents or 0) for account in accounts
    }
    for txn in transactions:
        if txn.type == TransactionType.transfer:
            if txn.account_id in balances:
                balances[txn.account_id] -= txn.amount_cents
            if txn.to_account_id in balances:
                balances[txn.to_account_id] += txn.amount_cents
        elif txn.account_id in balances:
            balances[txn.account_id] += signed_amount(txn)
    return balances


def net_balance(balances: dict[str, int]) -> int:
    return sum(balances.values())


def period_totals(transactions: Iterable, period: Period) -> PeriodTotals:
    income = 0
    expense = 0
    count = 0
    for txn in in_period(transactions, period):
        count += 1
        if txn.type == TransactionType.income:
            income += txn.amount_cents
        elif txn.type == TransactionType.expense:
            expense += txn.amount_cents
    return PeriodTotals(income_cents=income, expense_cents=expense, count=count)


def opening_balance(
    accounts: Iterable,
    transactions: Iterable,
    period: Period,
    carry_forward: bool,
) -> int:
    """Balance brought into ``period``; always 0 in the period-only view."""
    if not carry_forward:
        return 0
    accounts = list(accounts)
    known = {account.id for account in accounts}
    total = sum(int(account.opening_balance_cents or 0) for account in accounts)
    for txn in transactions:
        if txn.account_id not in known:
            continue
        if datetime.combine(txn.date, time.min) < period.start:
            total += signed_amount(txn)
    return total


def summarize(
    accounts: Sequence,
    transactions: Sequence,
    period: Period,
    *,
    carry_forward: bool = False,
) -> LedgerSummary:
    balances = account_balances(accounts, transactions)
    totals = period_totals(transactions, period)
    opening = opening_balance(accounts, transactions, period, carry_forward)
    return LedgerSummary(
        balances=balances,
        net_balance_cents=net_balance(balances),
        income_cents=totals.income_cents,
        expense_cents=totals.expense_cents,
        opening_balance_cents=opening,
        closing_balance_cents=opening + totals.net_cents,
        transaction_count=totals.count,
        carry_forward=carry_forward,
    )


def _with_percent(items: list, total: int) -> list:
    for item in items:
        item.percent = (item.value_cents / total * 100) if total else 0.0
    return items


def category_breakdown(
    transactions: Iterable,
    categories: Iterable,
    period: Period,
    kind: TransactionType = TransactionType.expense,
) -> list[BreakdownItem]:
    """Per-category totals of ``kind`` inside ``period``, largest first."""
    lookup = {category.id: category for category in categories}
    grouped: dict[str, BreakdownItem] = {}
    for txn in in_period(transactions, period):
        if txn.type != kind or txn.category_id is None:
            continue
        item = grouped.get(txn.category_id)
        if item is None:
            category = lookup.get(txn.category_id)
            item = BreakdownItem(
                category_id=txn.category_id,
                name=category.name if category else UNKNOWN_CATEGORY,
                icon=category.icon if category else None,
                color=category.color if category else None,
            )
            grouped[txn.category_id] = item
        item.value_cents += txn.amount_cents
    items = sorted(grouped.values(), key=lambda i: i.value_cents, reverse=True)
    return _with_percent(items, sum(i.value_cents for i in items))


def _sub_category_names(categories: Iterable) -> dict[str, str]:
    names: dict[str, str] = {}
    for category in categories:
        for sub in getattr(category, "sub_categories", None) or ():
            names[sub.id] = sub.name
    return names


def sub_category_breakdown(
    transactions: Iterable,
    categories: Iterable,
    period: Period,
    category_id: Optional[str] = None,
) -> list[SubBreakdownItem]:
    names = _sub_category_names(categories)
    grouped: dict[str, SubBreakdownItem] = {}
    for txn in in_period(transactions, period):
        if txn.type != TransactionType.expense or not txn.sub_category_id:
            continue
        if category_id is not None and txn.category_id != category_id:
            continue
        item = grouped.get(txn.sub_category_id)
        if item is None:
            item = SubBreakdownItem(
                sub_category_id=txn.sub_category_id,
                category_id=txn.category_id,
                name=names.get(txn.sub_category_id, UNKNOWN_SUB_CATEGORY),
            )
            grouped[txn.sub_category_id] = item
        item.value_cents += txn.amount_cents
    items = sorted(grouped.values(), key=lambda i: i.value_cents, reverse=True)
    return _with_percent(items, sum(i.value_cents for i in items))


def drilldown(
    transactions: Iterable,
    period: Period,
    *,
    sub_category_id: Optional[str] = None,
    category_id: Optional[str] = None,
) -> list:
    """Transactions behind a selected sub category (expense) or category (income).

    Newest first; same-day entries keep their input order.
    """
    if sub_category_id:
        wanted = [
            txn
            for txn in in_period(transactions, period)
            if txn.type == TransactionType.expense
            and txn.sub_category_id == sub_category_id
        ]
    elif category_id:
        wanted = [
            txn
            for txn in in_period(transactions, period)
            if txn.type == TransactionType.income and txn.category_id == category_id
        ]
    else:
        return []
    return newest_first(wanted)


def drilldown_total(transactions: Iterable) -> int:
    return sum(txn.amount_cents for txn in transactions)


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def month_label(day: date) -> str:
    return f"{MONTHS[day.month - 1]} '{day.year % 100:02d}"


def _trend(transactions: Iterable, group_attr: str, months: int) -> list[TrendRow]:
    rows: dict[str, TrendRow] = {}
    for txn in transactions:
        key = getattr(txn, group_attr)
        if key is None:
            continue
        mk = month_key(txn.date)
        row = rows.get(mk)
        if row is None:
            row = TrendRow(month_key=mk, label=month_label(txn.date))
            rows[mk] = row
        row.values[key] = row.values.get(key, 0) + txn.amount_cents
    ordered = sorted(rows.values(), key=lambda r: r.month_key)
    return ordered[-months:] if months > 0 else []


def monthly_trend(transactions: Iterable, months: int = 12) -> list[TrendRow]:
    """All-time expenses per calendar month and category, oldest month first."""
    expenses = (t for t in transactions if t.type == TransactionType.expense)
    return _trend(expenses, "category_id", months)


def sub_category_trend(
    transactions: Iterable, category_id: str, months: int = 12
) -> list[TrendRow]:
    expenses = (
        t
        for t in transactions
        if t.type == TransactionType.expense
        and t.category_id == category_id
        and t.sub_category_id
    )
    return _trend(expenses, "sub_category_id", months)


def trend_categories(transactions: Iterable, categories: Iterable) -> list:
    used = {t.category_id for t in transactions if t.type == TransactionType.expense}
    return [c for c in categories if c.id in used]


def category_label(txn, categories: dict, accounts: dict) -> str:
    if txn.type == TransactionType.transfer:
        source = accounts.get(txn.account_id)
        target = accounts.get(txn.to_account_id)
        return (
            f"Transfer: {source.name if source else 'Unknown account'}"
            f" → {target.name if target else 'Unknown account'}"
        )
    category = categories.get(txn.category_id)
    if category is None:
        return ""
    for sub in getattr(category, "sub_categories", None) or ():
        if sub.id == txn.sub_category_id:
            return f"{category.name} / {sub.name}"
    return category.name


def export_rows(
    transactions: Iterable,
    categories: Iterable,
    accounts: Iterable = (),
) -> list[ExportRow]:
    """Row projection handed to the export builders, newest first.

    Income is positive, expense negative and transfers carry 0.
    """
    category_lookup = {c.id: c for c in categories}
    account_lookup = {a.id: a for a in accounts}
    return [
        ExportRow(
            date=txn.date,
            amount_cents=signed_amount(txn),
            category=category_label(txn, category_lookup, account_lookup),
            note=txn.note or "",
            type=txn.type,
        )
        for txn in newest_first(transactions)
    ]
