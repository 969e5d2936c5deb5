import copy
import json
from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from database import Base
from models import CategoryKind, ExpenseCategory, TransactionType, UIMode
from schemas import AccountIn, CategoryIn, SettingsIn, SubCategoryIn, TransactionIn
from services import (
    BACKUP_VERSION,
    AccountService,
    BackupService,
    CategoryService,
    LedgerService,
    SettingsService,
    TransactionService,
)

NOW = datetime(2026, 2, 15, 12, 0)

LEGACY_BACKUP = {
    "version": "4.0",
    "backupDate": "2026-02-14T10:00:00.000Z",
    "appName": "Home Budget",
    "accounts": [
        {"id": "a1", "name": "HDFC", "icon": "🏦", "color": "#10b981", "openingBal": 1500.5},
        {"id": "a2", "name": "Cash", "icon": "💵", "color": "#8b5cf6"},
    ],
    "expCats": [
        {
            "id": "e1",
            "name": "Food",
            "icon": "🍽️",
            "color": "#f97316",
            "sub": [{"id": "e1s1", "name": "Restaurants"}],
        }
    ],
    "incCats": [{"id": "i1", "name": "Salary", "icon": "💼", "color": "#10b981"}],
    "transactions": [
        {
            "id": "t1",
            "date": "2026-02-03",
            "type": "expense",
            "accountId": "a1",
            "catId": "e1",
            "subCatId": "e1s1",
            "amount": 250.75,
            "note": "Dinner",
        },
        {
            "id": "t2",
            "date": "2026-02-01",
            "type": "income",
            "accountId": "a1",
            "catId": "i1",
            "subCatId": "",
            "amount": 50000,
            "note": "",
        },
        {
            "id": "t3",
            "date": "2026-02-05",
            "type": "transfer",
            "accountId": "a1",
            "toAccountId": "a2",
            "catId": None,
            "amount": 1000,
            "note": "ATM",
        },
    ],
    "settings": {
        "uiMode": "dark",
        "notifications": True,
        "reminderTimes": ["21:00", "09:00"],
        "smsDetection": False,
        "carryForward": True,
        "notifMode": "browser",
    },
}


def make_session() -> Session:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return Session(engine)


def populate(session: Session) -> None:
    hdfc = AccountService(session).create(
        AccountIn(name="HDFC", opening_balance_cents=10000)
    )
    categories = CategoryService(session)
    food = categories.create(CategoryIn(name="Food", kind=CategoryKind.expense))
    groceries = categories.add_sub_category(food.id, SubCategoryIn(name="Groceries"))
    TransactionService(session).create(
        TransactionIn(
            date=date(2026, 2, 4),
            type=TransactionType.expense,
            account_id=hdfc.id,
            category_id=food.id,
            sub_category_id=groceries.id,
            amount_cents=2599,
            note="Weekly shop",
        )
    )
    SettingsService(session).update(SettingsIn(app_name="Family Ledger"))


def test_export_contains_every_collection() -> None:
    with make_session() as session:
        populate(session)

        payload = BackupService(session).export(now=NOW)

        assert payload["version"] == BACKUP_VERSION
        assert payload["backup_date"] == NOW.isoformat()
        assert payload["app_name"] == "Family Ledger"
        assert len(payload["accounts"]) == 1
        assert payload["expense_categories"][0]["sub_categories"][0]["name"] == "Groceries"
        assert payload["income_categories"] == []
        assert payload["transactions"][0]["amount_cents"] == 2599
        assert payload["settings"]["reminder_times"] == ["09:00", "21:00"]
        json.dumps(payload)


def test_backup_restores_into_an_empty_database() -> None:
    with make_session() as source:
        populate(source)
        payload = json.loads(json.dumps(BackupService(source).export()))
        expected = LedgerService(source, now=NOW).summary(
            LedgerService(source, now=NOW).period("mtd")
        )

    with make_session() as target:
        counts = BackupService(target).restore(payload)

        assert counts == {"accounts": 1, "categories": 1, "transactions": 1}
        ledger_service = LedgerService(target, now=NOW)
        restored = ledger_service.summary(ledger_service.period("mtd"))
        assert restored.balances == expected.balances
        assert restored.expense_cents == expected.expense_cents
        assert SettingsService(target).get().app_name == "Family Ledger"


def test_restore_replaces_existing_data() -> None:
    with make_session() as session:
        populate(session)
        payload = BackupService(session).export()
        AccountService(session).create(AccountIn(name="Temporary"))

        BackupService(session).restore(payload)

        assert [a.name for a in AccountService(session).list_all()] == ["HDFC"]
        assert len(TransactionService(session).list_all()) == 1


def test_restore_reads_the_legacy_camel_case_layout() -> None:
    with make_session() as session:
        counts = BackupService(session).restore(LEGACY_BACKUP)

        assert counts == {"accounts": 2, "categories": 2, "transactions": 3}
        food = CategoryService(session).get("e1")
        assert isinstance(food, ExpenseCategory)
        assert [s.id for s in food.sub_categories] == ["e1s1"]

        dinner = TransactionService(session).get("t1")
        assert dinner.amount_cents == 25075
        assert dinner.sub_category_id == "e1s1"
        salary = TransactionService(session).get("t2")
        assert salary.sub_category_id is None
        assert salary.note is None

        balances = LedgerService(session).snapshot()
        accounts = {a.id: a for a in balances.accounts}
        assert accounts["a1"].opening_balance_cents == 150050
        assert accounts["a2"].opening_balance_cents == 0

        settings = SettingsService(session).get()
        assert settings.app_name == "Home Budget"
        assert settings.ui_mode == UIMode.dark
        assert settings.notifications is True
        assert settings.reminder_times == ["09:00", "21:00"]
        assert settings.sms_detection is False
        assert settings.carry_forward is True


def test_legacy_balances_after_restore() -> None:
    with make_session() as session:
        BackupService(session).restore(LEGACY_BACKUP)
        ledger_service = LedgerService(session, now=NOW)

        summary = ledger_service.summary(ledger_service.period("mtd"))

        assert summary.balances == {
            "a1": 150050 + 5000000 - 25075 - 100000,
            "a2": 100000,
        }
        assert summary.income_cents == 5000000
        assert summary.expense_cents == 25075


def test_restore_requires_a_version() -> None:
    with make_session() as session:
        payload = dict(LEGACY_BACKUP)
        payload.pop("version")

        with pytest.raises(ValueError, match="Invalid backup file"):
            BackupService(session).restore(payload)
        with pytest.raises(ValueError):
            BackupService(session).restore([])


def test_invalid_transaction_aborts_restore_without_touching_data() -> None:
    with make_session() as session:
        populate(session)
        payload = BackupService(session).export()
        payload["transactions"].append(
            {
                "id": "bad",
                "date": "2026-02-05",
                "type": "transfer",
                "account_id": "x",
                "to_account_id": "x",
                "amount_cents": 100,
            }
        )
        AccountService(session).create(AccountIn(name="Savings"))

        with pytest.raises(ValueError, match="Transaction 2"):
            BackupService(session).restore(payload)

        assert len(AccountService(session).list_all()) == 2


def test_malformed_record_is_reported() -> None:
    with make_session() as session:
        with pytest.raises(ValueError, match="malformed record"):
            BackupService(session).restore(
                {"version": "5.0", "accounts": [{"name": "No id"}]}
            )


def test_duplicate_account_id_is_rejected_before_touching_data() -> None:
    with make_session() as session:
        populate(session)
        payload = copy.deepcopy(LEGACY_BACKUP)
        payload["accounts"].append(dict(payload["accounts"][0]))

        with pytest.raises(ValueError, match="duplicate id a1"):
            BackupService(session).restore(payload)

        assert len(AccountService(session).list_all()) == 1


def test_duplicate_transaction_id_is_rejected() -> None:
    with make_session() as session:
        populate(session)
        payload = BackupService(session).export()
        payload["transactions"].append(dict(payload["transactions"][0]))

        with pytest.raises(ValueError, match="duplicate id"):
            BackupService(session).restore(payload)

        assert len(TransactionService(session).list_all()) == 1


def test_non_finite_legacy_amount_is_rejected() -> None:
    with make_session() as session:
        payload = copy.deepcopy(LEGACY_BACKUP)
        payload["transactions"][0]["amount"] = float("inf")

        with pytest.raises(ValueError, match="Invalid amount"):
            BackupService(session).restore(payload)


def test_long_legacy_note_is_truncated() -> None:
    with make_session() as session:
        payload = copy.deepcopy(LEGACY_BACKUP)
        payload["transactions"][0]["note"] = "x" * 250

        counts = BackupService(session).restore(payload)

        assert counts == {"accounts": 2, "categories": 2, "transactions": 3}
        assert len(TransactionService(session).get("t1").note) == 200
