from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from rapidfuzz.distance import Levenshtein
from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

import ledger
from export_utils import export_csv, export_xlsx, parse_amount, render_report_html
from filters import TransactionFilters, apply_filters, in_period
from models import (
    Account,
    AppSettings,
    Category,
    CategoryKind,
    ExpenseCategory,
    IncomeCategory,
    SubCategory,
    Transaction,
    TransactionType,
    UIMode,
    new_id,
)
from periods import Period, local_now, resolve_period
from schemas import (
    NOTE_MAX_LENGTH,
    AccountIn,
    AccountUpdate,
    CategoryIn,
    CategoryUpdate,
    SettingsIn,
    SubCategoryIn,
    TransactionIn,
)
from sms_utils import parse_sms

logger = logging.getLogger(__name__)

BACKUP_VERSION = "5.0"
SETTINGS_ROW_ID = 1
DEFAULT_ICONS = {CategoryKind.expense: "🍽️", CategoryKind.income: "💰"}


def _next_order(session: Session, column) -> int:
    current = session.execute(select(func.max(column))).scalar_one()
    return 0 if current is None else int(current) + 1


def _cents_from_legacy(value: Any) -> int:
    if value is None or value == "":
        return 0
    return parse_amount(str(value), allow_negative=True)


class AccountService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_all(self) -> list[Account]:
        stmt = select(Account).order_by(Account.order, Account.created_at)
        return self.session.scalars(stmt).all()

    def get(self, account_id: str) -> Account:
        account = self.session.get(Account, account_id)
        if not account:
            raise ValueError("Account not found")
        return account

    def create(self, data: AccountIn) -> Account:
        account = Account(
            id=new_id("a"),
            name=data.name.strip(),
            icon=data.icon,
            color=data.color,
            opening_balance_cents=data.opening_balance_cents,
            order=_next_order(self.session, Account.order),
        )
        self.session.add(account)
        self.session.commit()
        self.session.refresh(account)
        return account

    def update(self, account_id: str, data: AccountUpdate) -> Account:
        account = self.get(account_id)
        for field, value in data.model_dump(exclude_none=True).items():
            setattr(account, field, value.strip() if field == "name" else value)
        self.session.commit()
        self.session.refresh(account)
        return account

    def has_transactions(self, account_id: str) -> bool:
        stmt = select(func.count(Transaction.id)).where(
            or_(
                Transaction.account_id == account_id,
                Transaction.to_account_id == account_id,
            )
        )
        return (self.session.execute(stmt).scalar_one() or 0) > 0

    def delete(self, account_id: str) -> bool:
        """Delete the account; refused (returns False) while transactions use it."""
        account = self.get(account_id)
        if self.has_transactions(account_id):
            logger.info(f"account_delete_refused: id={account_id}")
            return False
        self.session.delete(account)
        self.session.commit()
        return True


class CategoryService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_expense(self) -> list[ExpenseCategory]:
        stmt = (
            select(ExpenseCategory)
            .options(selectinload(ExpenseCategory.sub_categories))
            .order_by(ExpenseCategory.order, ExpenseCategory.created_at)
        )
        return self.session.scalars(stmt).all()

    def list_income(self) -> list[IncomeCategory]:
        stmt = select(IncomeCategory).order_by(
            IncomeCategory.order, IncomeCategory.created_at
        )
        return self.session.scalars(stmt).all()

    def list_all(self) -> list[Category]:
        return [*self.list_expense(), *self.list_income()]

    def get(self, category_id: str) -> Category:
        category = self.session.get(Category, category_id)
        if not category:
            raise ValueError("Category not found")
        return category

    def create(self, data: CategoryIn) -> Category:
        existing = self.session.scalar(
            select(Category).where(
                Category.kind == data.kind,
                func.lower(Category.name) == data.name.strip().lower(),
            )
        )
        if existing:
            raise ValueError("Category with this name already exists")
        model = ExpenseCategory if data.kind == CategoryKind.expense else IncomeCategory
        category = model(
            id=new_id("e" if data.kind == CategoryKind.expense else "i"),
            name=data.name.strip(),
            icon=data.icon or DEFAULT_ICONS[data.kind],
            color=data.color,
            order=_next_order(self.session, Category.order),
        )
        self.session.add(category)
        self.session.commit()
        self.session.refresh(category)
        return category

    def update(self, category_id: str, data: CategoryUpdate) -> Category:
        # Top-level fields only; an expense category keeps its sub categories.
        category = self.get(category_id)
        if data.name is not None:
            existing = self.session.scalar(
                select(Category).where(
                    Category.kind == category.kind,
                    func.lower(Category.name) == data.name.strip().lower(),
                    Category.id != category_id,
                )
            )
            if existing:
                raise ValueError("Category with this name already exists")
        for field, value in data.model_dump(exclude_none=True).items():
            setattr(category, field, value.strip() if field == "name" else value)
        self.session.commit()
        self.session.refresh(category)
        return category

    def has_transactions(self, category_id: str) -> bool:
        stmt = select(func.count(Transaction.id)).where(
            Transaction.category_id == category_id
        )
        return (self.session.execute(stmt).scalar_one() or 0) > 0

    def delete(self, category_id: str) -> bool:
        category = self.get(category_id)
        sub_ids = [s.id for s in getattr(category, "sub_categories", [])]
        in_use = self.has_transactions(category_id) or any(
            self.sub_category_has_transactions(sub_id) for sub_id in sub_ids
        )
        if in_use:
            logger.info(f"category_delete_refused: id={category_id}")
            return False
        self.session.delete(category)
        self.session.commit()
        return True

    def _expense_parent(self, category_id: str) -> ExpenseCategory:
        category = self.get(category_id)
        if not isinstance(category, ExpenseCategory):
            raise ValueError("Only expense categories have sub categories")
        return category

    def get_sub_category(self, category_id: str, sub_category_id: str) -> SubCategory:
        sub = self.session.get(SubCategory, sub_category_id)
        if not sub or sub.category_id != category_id:
            raise ValueError("Sub category not found")
        return sub

    def add_sub_category(self, category_id: str, data: SubCategoryIn) -> SubCategory:
        parent = self._expense_parent(category_id)
        sub = SubCategory(
            id=f"{parent.id}s{new_id('')}",
            category_id=parent.id,
            name=data.name.strip(),
            order=len(parent.sub_categories),
        )
        parent.sub_categories.append(sub)
        self.session.commit()
        self.session.refresh(sub)
        return sub

    def rename_sub_category(
        self, category_id: str, sub_category_id: str, data: SubCategoryIn
    ) -> SubCategory:
        sub = self.get_sub_category(category_id, sub_category_id)
        sub.name = data.name.strip()
        self.session.commit()
        return sub

    def sub_category_has_transactions(self, sub_category_id: str) -> bool:
        stmt = select(func.count(Transaction.id)).where(
            Transaction.sub_category_id == sub_category_id
        )
        return (self.session.execute(stmt).scalar_one() or 0) > 0

    def delete_sub_category(self, category_id: str, sub_category_id: str) -> bool:
        sub = self.get_sub_category(category_id, sub_category_id)
        if self.sub_category_has_transactions(sub_category_id):
            logger.info(f"sub_category_delete_refused: id={sub_category_id}")
            return False
        self.session.delete(sub)
        self.session.commit()
        return True


class TransactionService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _validate_references(self, data: TransactionIn) -> None:
        if not self.session.get(Account, data.account_id):
            raise ValueError("Account not found")
        if data.type == TransactionType.transfer:
            if not self.session.get(Account, data.to_account_id):
                raise ValueError("Destination account not found")
            return

        category = self.session.get(Category, data.category_id)
        if not category:
            raise ValueError("Category not found")
        if category.kind.value != data.type.value:
            raise ValueError("Category type mismatch")
        if data.sub_category_id:
            sub_ids = {s.id for s in getattr(category, "sub_categories", [])}
            if data.sub_category_id not in sub_ids:
                raise ValueError("Sub category does not belong to category")

    def create(self, data: TransactionIn) -> Transaction:
        self._validate_references(data)
        txn = Transaction(
            id=new_id("t"),
            date=data.date,
            type=data.type,
            account_id=data.account_id,
            to_account_id=data.to_account_id,
            category_id=data.category_id,
            sub_category_id=data.sub_category_id,
            amount_cents=data.amount_cents,
            note=data.note,
            position=_next_order(self.session, Transaction.position),
        )
        self.session.add(txn)
        self.session.commit()
        self.session.refresh(txn)
        return txn

    def get(self, transaction_id: str) -> Transaction:
        txn = self.session.get(Transaction, transaction_id)
        if not txn:
            raise ValueError("Transaction not found")
        return txn

    def update(self, transaction_id: str, data: TransactionIn) -> Transaction:
        txn = self.get(transaction_id)
        self._validate_references(data)
        txn.date = data.date
        txn.type = data.type
        txn.account_id = data.account_id
        txn.to_account_id = data.to_account_id
        txn.category_id = data.category_id
        txn.sub_category_id = data.sub_category_id
        txn.amount_cents = data.amount_cents
        txn.note = data.note
        self.session.commit()
        self.session.refresh(txn)
        return txn

    def delete(self, transaction_id: str) -> None:
        txn = self.get(transaction_id)
        self.session.delete(txn)
        self.session.commit()

    def list_all(self) -> list[Transaction]:
        stmt = select(Transaction).order_by(Transaction.position, Transaction.id)
        return self.session.scalars(stmt).all()

    def for_period(
        self, period: Period, filters: Optional[TransactionFilters] = None
    ) -> list[Transaction]:
        return apply_filters(in_period(self.list_all(), period), filters)


def resolve_ui_mode(ui_mode: UIMode, system_dark: bool) -> UIMode:
    if ui_mode == UIMode.auto:
        return UIMode.dark if system_dark else UIMode.light
    return ui_mode


class SettingsService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self) -> AppSettings:
        settings = self.session.get(AppSettings, SETTINGS_ROW_ID)
        if settings is None:
            settings = AppSettings(id=SETTINGS_ROW_ID)
            settings.reminder_times = list(settings.reminder_times)
            self.session.add(settings)
            self.session.commit()
            self.session.refresh(settings)
        return settings

    def update(self, data: SettingsIn) -> AppSettings:
        settings = self.get()
        for field, value in data.model_dump(exclude_none=True).items():
            setattr(settings, field, value)
        self.session.commit()
        self.session.refresh(settings)
        logger.info(
            f"settings_updated: notifications={settings.notifications} "
            f"reminders={','.join(settings.reminder_times)} "
            f"carry_forward={settings.carry_forward}"
        )
        return settings


@dataclass
class LedgerSnapshot:
    accounts: list[Account]
    expense_categories: list[ExpenseCategory]
    income_categories: list[IncomeCategory]
    transactions: list[Transaction]
    settings: AppSettings

    @property
    def categories(self) -> list[Category]:
        return [*self.expense_categories, *self.income_categories]


class LedgerService:
    """Loads a settled snapshot and hands it to the pure ledger functions."""

    def __init__(self, session: Session, now: Optional[datetime] = None) -> None:
        self.session = session
        self.now = now

    def snapshot(self) -> LedgerSnapshot:
        categories = CategoryService(self.session)
        return LedgerSnapshot(
            accounts=AccountService(self.session).list_all(),
            expense_categories=categories.list_expense(),
            income_categories=categories.list_income(),
            transactions=TransactionService(self.session).list_all(),
            settings=SettingsService(self.session).get(),
        )

    def period(
        self,
        selector: Optional[str],
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> Period:
        return resolve_period(selector, start, end, now=self.now or local_now())

    def summary(self, period: Period) -> ledger.LedgerSummary:
        snap = self.snapshot()
        return ledger.summarize(
            snap.accounts,
            snap.transactions,
            period,
            carry_forward=snap.settings.carry_forward,
        )

    def category_breakdown(
        self, period: Period, kind: TransactionType = TransactionType.expense
    ) -> list[ledger.BreakdownItem]:
        snap = self.snapshot()
        return ledger.category_breakdown(
            snap.transactions, snap.categories, period, kind
        )

    def sub_category_breakdown(
        self, period: Period, category_id: Optional[str] = None
    ) -> list[ledger.SubBreakdownItem]:
        snap = self.snapshot()
        return ledger.sub_category_breakdown(
            snap.transactions, snap.expense_categories, period, category_id
        )

    def drilldown(
        self,
        period: Period,
        *,
        sub_category_id: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> list[Transaction]:
        return ledger.drilldown(
            TransactionService(self.session).list_all(),
            period,
            sub_category_id=sub_category_id,
            category_id=category_id,
        )

    def trend(
        self, category_id: Optional[str] = None, months: int = 12
    ) -> list[ledger.TrendRow]:
        transactions = TransactionService(self.session).list_all()
        if category_id:
            return ledger.sub_category_trend(transactions, category_id, months)
        return ledger.monthly_trend(transactions, months)

    def trend_legend(self, category_id: Optional[str] = None) -> list:
        """Categories, or one parent's sub categories, that appear in the trend."""
        transactions = TransactionService(self.session).list_all()
        if category_id:
            parent = self.session.get(Category, category_id)
            used = {
                t.sub_category_id
                for t in transactions
                if t.type == TransactionType.expense and t.category_id == category_id
            }
            return [s for s in getattr(parent, "sub_categories", []) if s.id in used]
        expense = CategoryService(self.session).list_expense()
        return ledger.trend_categories(transactions, expense)

    def export_rows(
        self, period: Period, filters: Optional[TransactionFilters] = None
    ) -> list[ledger.ExportRow]:
        snap = self.snapshot()
        scoped = apply_filters(in_period(snap.transactions, period), filters)
        return ledger.export_rows(scoped, snap.categories, snap.accounts)


class ExportService:
    def __init__(self, session: Session, now: Optional[datetime] = None) -> None:
        self.session = session
        self.ledger = LedgerService(session, now)

    def csv(self, period: Period, filters: Optional[TransactionFilters] = None) -> str:
        return export_csv(self.ledger.export_rows(period, filters))

    def xlsx(
        self, period: Period, filters: Optional[TransactionFilters] = None
    ) -> bytes:
        return export_xlsx(self.ledger.export_rows(period, filters))

    def report_html(
        self,
        period: Period,
        filters: Optional[TransactionFilters] = None,
        *,
        currency_symbol: str = "",
    ) -> str:
        settings = SettingsService(self.session).get()
        return render_report_html(
            self.ledger.export_rows(period, filters),
            app_name=settings.app_name,
            period_label=period.label,
            currency_symbol=currency_symbol,
            generated_at=self.ledger.now or local_now(),
        )


def account_to_dict(account: Account) -> dict[str, object]:
    return {
        "id": account.id,
        "name": account.name,
        "icon": account.icon,
        "color": account.color,
        "opening_balance_cents": account.opening_balance_cents,
    }


def category_to_dict(category: Category) -> dict[str, object]:
    data: dict[str, object] = {
        "id": category.id,
        "kind": category.kind.value,
        "name": category.name,
        "icon": category.icon,
        "color": category.color,
    }
    if isinstance(category, ExpenseCategory):
        data["sub_categories"] = [
            {"id": s.id, "name": s.name} for s in category.sub_categories
        ]
    return data


def transaction_to_dict(txn: Transaction) -> dict[str, object]:
    return {
        "id": txn.id,
        "date": txn.date.isoformat(),
        "type": txn.type.value,
        "account_id": txn.account_id,
        "to_account_id": txn.to_account_id,
        "category_id": txn.category_id,
        "sub_category_id": txn.sub_category_id,
        "amount_cents": txn.amount_cents,
        "note": txn.note,
    }


def settings_to_dict(settings: AppSettings) -> dict[str, object]:
    return {
        "app_name": settings.app_name,
        "ui_mode": settings.ui_mode.value,
        "notifications": settings.notifications,
        "reminder_times": settings.reminder_times,
        "sms_detection": settings.sms_detection,
        "carry_forward": settings.carry_forward,
    }


class BackupService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def export(self, now: Optional[datetime] = None) -> dict[str, object]:
        snap = LedgerService(self.session).snapshot()
        return {
            "version": BACKUP_VERSION,
            "backup_date": (now or datetime.utcnow()).isoformat(),
            "app_name": snap.settings.app_name,
            "accounts": [account_to_dict(a) for a in snap.accounts],
            "expense_categories": [
                category_to_dict(c) for c in snap.expense_categories
            ],
            "income_categories": [category_to_dict(c) for c in snap.income_categories],
            "transactions": [transaction_to_dict(t) for t in snap.transactions],
            "settings": settings_to_dict(snap.settings),
        }

    @staticmethod
    def _is_legacy(payload: dict[str, Any]) -> bool:
        return "expCats" in payload or "incCats" in payload

    def _normalize_legacy(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Translate a camelCase backup written by the browser version of the app."""
        settings = payload.get("settings") or {}
        return {
            "app_name": payload.get("appName"),
            "accounts": [
                {
                    "id": a.get("id"),
                    "name": a.get("name"),
                    "icon": a.get("icon"),
                    "color": a.get("color"),
                    "opening_balance_cents": _cents_from_legacy(a.get("openingBal")),
                }
                for a in payload.get("accounts") or []
            ],
            "expense_categories": [
                {
                    "id": c.get("id"),
                    "name": c.get("name"),
                    "icon": c.get("icon"),
                    "color": c.get("color"),
                    "sub_categories": c.get("sub") or [],
                }
                for c in payload.get("expCats") or []
            ],
            "income_categories": payload.get("incCats") or [],
            "transactions": [
                {
                    "id": t.get("id"),
                    "date": t.get("date"),
                    "type": t.get("type"),
                    "account_id": t.get("accountId"),
                    "to_account_id": t.get("toAccountId") or None,
                    "category_id": t.get("catId") or None,
                    "sub_category_id": t.get("subCatId") or None,
                    "amount_cents": _cents_from_legacy(t.get("amount")),
                    "note": str(t.get("note") or "")[:NOTE_MAX_LENGTH] or None,
                }
                for t in payload.get("transactions") or payload.get("txns") or []
            ],
            "settings": {
                "ui_mode": settings.get("uiMode"),
                "notifications": settings.get("notifications"),
                "reminder_times": settings.get("reminderTimes"),
                "sms_detection": settings.get("smsDetection"),
                "carry_forward": settings.get("carryForward"),
            },
        }

    @staticmethod
    def _check_unique(ids: list[str]) -> None:
        seen: set[str] = set()
        for record_id in ids:
            if record_id in seen:
                raise ValueError(f"Invalid backup file: duplicate id {record_id}")
            seen.add(record_id)

    @staticmethod
    def _catalog(payload: dict[str, Any]) -> tuple[list[Account], list[Category]]:
        accounts = [
            Account(
                id=str(raw["id"]),
                name=str(raw["name"]),
                icon=raw.get("icon"),
                color=raw.get("color"),
                opening_balance_cents=int(raw.get("opening_balance_cents") or 0),
                order=idx,
            )
            for idx, raw in enumerate(payload.get("accounts") or [])
        ]
        categories: list[Category] = []
        for idx, raw in enumerate(payload.get("expense_categories") or []):
            category = ExpenseCategory(
                id=str(raw["id"]),
                name=str(raw["name"]),
                icon=raw.get("icon"),
                color=raw.get("color"),
                order=idx,
            )
            category.sub_categories = [
                SubCategory(id=str(s["id"]), name=str(s["name"]), order=pos)
                for pos, s in enumerate(raw.get("sub_categories") or [])
            ]
            categories.append(category)
        offset = len(categories)
        for idx, raw in enumerate(payload.get("income_categories") or []):
            categories.append(
                IncomeCategory(
                    id=str(raw["id"]),
                    name=str(raw["name"]),
                    icon=raw.get("icon"),
                    color=raw.get("color"),
                    order=offset + idx,
                )
            )
        BackupService._check_unique([a.id for a in accounts])
        BackupService._check_unique([c.id for c in categories])
        BackupService._check_unique(
            [s.id for c in categories for s in getattr(c, "sub_categories", [])]
        )
        return accounts, categories

    def restore(self, payload: dict[str, Any]) -> dict[str, int]:
        """Replace every stored record with the backup contents in one commit."""
        if not isinstance(payload, dict) or not payload.get("version"):
            raise ValueError("Invalid backup file")
        version = str(payload["version"])
        if self._is_legacy(payload):
            payload = self._normalize_legacy(payload)
        try:
            accounts, categories = self._catalog(payload)
        except (KeyError, TypeError, AttributeError) as exc:
            raise ValueError(f"Invalid backup file: malformed record ({exc})") from exc

        transactions: list[Transaction] = []
        for idx, raw in enumerate(payload.get("transactions") or []):
            try:
                data = TransactionIn.model_validate(
                    {k: v for k, v in raw.items() if k != "id"}
                )
            except ValueError as exc:
                raise ValueError(f"Transaction {idx + 1}: {exc}") from exc
            transactions.append(
                Transaction(
                    id=str(raw.get("id") or new_id("t")),
                    date=data.date,
                    type=data.type,
                    account_id=data.account_id,
                    to_account_id=data.to_account_id,
                    category_id=data.category_id,
                    sub_category_id=data.sub_category_id,
                    amount_cents=data.amount_cents,
                    note=data.note,
                    position=idx,
                )
            )
        self._check_unique([txn.id for txn in transactions])

        raw_settings = {
            k: v for k, v in (payload.get("settings") or {}).items() if v is not None
        }
        if raw_settings.get("ui_mode") not in {m.value for m in UIMode}:
            raw_settings.pop("ui_mode", None)
        if payload.get("app_name"):
            raw_settings["app_name"] = payload["app_name"]
        settings_in = SettingsIn.model_validate(raw_settings)

        self.session.execute(delete(Transaction))
        self.session.execute(delete(SubCategory))
        self.session.execute(delete(Category))
        self.session.execute(delete(Account))
        self.session.expunge_all()
        self.session.add_all([*accounts, *categories, *transactions])
        try:
            self.session.flush()
        except IntegrityError as exc:
            self.session.rollback()
            raise ValueError("Invalid backup file: conflicting records") from exc
        SettingsService(self.session).update(settings_in)

        counts = {
            "accounts": len(accounts),
            "categories": len(categories),
            "transactions": len(transactions),
        }
        logger.info(
            f"backup_restored: version={version} accounts={counts['accounts']} "
            f"categories={counts['categories']} transactions={counts['transactions']}"
        )
        return counts


class SMSService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _suggest_category(self, note: str, kind: CategoryKind) -> Optional[Category]:
        wanted = note.strip().lower()
        if not wanted:
            return None
        candidates = [
            c for c in CategoryService(self.session).list_all() if c.kind == kind
        ]
        best_distance: Optional[int] = None
        best: list[Category] = []
        for category in candidates:
            dist = int(Levenshtein.distance(wanted, category.name.strip().lower()))
            if best_distance is None or dist < best_distance:
                best_distance = dist
                best = [category]
            elif dist == best_distance:
                best.append(category)
        if best_distance is not None and best_distance <= 1 and len(best) == 1:
            return best[0]
        return None

    def draft(self, text: str) -> Optional[dict[str, object]]:
        if not SettingsService(self.session).get().sms_detection:
            return None
        parsed = parse_sms(text)
        if parsed is None:
            return None
        kind = CategoryKind(parsed.type.value)
        category = self._suggest_category(parsed.note, kind)
        return {
            "type": parsed.type.value,
            "amount_cents": parsed.amount_cents,
            "note": parsed.note,
            "suggested_category_id": category.id if category else None,
        }


DEFAULT_ACCOUNTS = [
    ("HDFC Savings", "🏦", "#10b981"),
    ("SBI Current", "🏦", "#3b82f6"),
    ("ICICI Credit Card", "💳", "#f59e0b"),
    ("Cash Wallet", "💵", "#8b5cf6"),
]

DEFAULT_EXPENSE_CATEGORIES = [
    ("Food & Dining", "🍽️", "#f97316", ["Restaurants", "Groceries", "Coffee & Snacks", "Food Delivery", "Milk", "Fruits & Vegetables"]),
    ("Transportation", "🚗", "#3b82f6", ["Petrol", "Public Transit", "Taxi / Cab", "Maintenance"]),
    ("Housing", "🏠", "#8b5cf6", ["Rent", "Electricity", "Water & Gas", "Repairs", "EMI"]),
    ("Entertainment", "🎬", "#ec4899", ["Movies", "Streaming", "Games", "Events"]),
    ("Health", "💊", "#14b8a6", ["Pharmacy", "Doctor", "Gym", "Insurance"]),
    ("Shopping", "🛍️", "#f59e0b", ["Clothing", "Electronics", "Home Decor", "Gifts"]),
    ("Education", "📚", "#06b6d4", ["Tuition", "Books", "Courses"]),
    ("Personal Care", "💆", "#a855f7", ["Salon & Spa", "Cosmetics"]),
    ("Bills", "🧾", "#64748b", ["Mobile", "Internet", "DTH/Cable"]),
    ("Grocery", "🛒", "#84cc16", ["Supermarket", "Household", "Snacks"]),
    ("Miscellaneous", "📦", "#94a3b8", ["Other"]),
]

DEFAULT_INCOME_CATEGORIES = [
    ("Salary", "💼", "#10b981"),
    ("Freelance", "💻", "#3b82f6"),
    ("Business", "🏢", "#f59e0b"),
    ("Investments", "📈", "#8b5cf6"),
    ("Rental Income", "🏘️", "#14b8a6"),
    ("Bonus", "🎁", "#ec4899"),
    ("IPO / Stocks", "📊", "#3b82f6"),
    ("Other", "💰", "#64748b"),
]


def seed_defaults(session: Session) -> bool:
    """Populate an empty database with the starter accounts and categories."""
    has_accounts = session.execute(select(func.count(Account.id))).scalar_one()
    has_categories = session.execute(select(func.count(Category.id))).scalar_one()
    if has_accounts or has_categories:
        return False

    for idx, (name, icon, color) in enumerate(DEFAULT_ACCOUNTS, start=1):
        session.add(Account(id=f"a{idx}", name=name, icon=icon, color=color, order=idx))
    for idx, (name, icon, color, subs) in enumerate(DEFAULT_EXPENSE_CATEGORIES, start=1):
        category = ExpenseCategory(
            id=f"e{idx}", name=name, icon=icon, color=color, order=idx
        )
        category.sub_categories = [
            SubCategory(id=f"e{idx}s{pos}", name=sub, order=pos)
            for pos, sub in enumerate(subs, start=1)
        ]
        session.add(category)
    offset = len(DEFAULT_EXPENSE_CATEGORIES)
    for idx, (name, icon, color) in enumerate(DEFAULT_INCOME_CATEGORIES, start=1):
        session.add(
            IncomeCategory(
                id=f"i{idx}", name=name, icon=icon, color=color, order=offset + idx
            )
        )
    SettingsService(session).get()
    session.commit()
    logger.info(
        f"defaults_seeded: accounts={len(DEFAULT_ACCOUNTS)} "
        f"categories={offset + len(DEFAULT_INCOME_CATEGORIES)}"
    )
    return True
