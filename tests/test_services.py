from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from database import Base
from models import CategoryKind, ExpenseCategory, IncomeCategory, TransactionType, UIMode
from schemas import (
    AccountIn,
    AccountUpdate,
    CategoryIn,
    CategoryUpdate,
    SettingsIn,
    SubCategoryIn,
    TransactionIn,
)
from services import (
    AccountService,
    CategoryService,
    LedgerService,
    SettingsService,
    SMSService,
    TransactionService,
    resolve_ui_mode,
    seed_defaults,
)


def make_session() -> Session:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return Session(engine)


def setup_ledger(session: Session):
    accounts = AccountService(session)
    categories = CategoryService(session)
    hdfc = accounts.create(AccountIn(name="HDFC", opening_balance_cents=50000))
    cash = accounts.create(AccountIn(name="Cash"))
    food = categories.create(CategoryIn(name="Food", kind=CategoryKind.expense))
    restaurants = categories.add_sub_category(food.id, SubCategoryIn(name="Restaurants"))
    salary = categories.create(CategoryIn(name="Salary", kind=CategoryKind.income))
    return hdfc, cash, food, restaurants, salary


def expense_in(account_id, category_id, amount, day=date(2026, 2, 3), sub=None):
    return TransactionIn(
        date=day,
        type=TransactionType.expense,
        account_id=account_id,
        category_id=category_id,
        sub_category_id=sub,
        amount_cents=amount,
    )


def test_account_update_merges_only_supplied_fields() -> None:
    with make_session() as session:
        service = AccountService(session)
        account = service.create(AccountIn(name="HDFC", color="#123456"))

        updated = service.update(account.id, AccountUpdate(name="  HDFC Salary "))

        assert updated.id == account.id
        assert updated.name == "HDFC Salary"
        assert updated.color == "#123456"


def test_account_delete_is_refused_while_referenced() -> None:
    with make_session() as session:
        hdfc, cash, *_ = setup_ledger(session)
        txn = TransactionService(session).create(
            TransactionIn(
                date=date(2026, 2, 1),
                type=TransactionType.transfer,
                account_id=hdfc.id,
                to_account_id=cash.id,
                amount_cents=1000,
            )
        )
        accounts = AccountService(session)

        assert accounts.delete(cash.id) is False
        assert accounts.delete(hdfc.id) is False
        assert len(accounts.list_all()) == 2

        TransactionService(session).delete(txn.id)
        assert accounts.delete(cash.id) is True
        assert [a.name for a in accounts.list_all()] == ["HDFC"]


def test_missing_account_raises_not_found() -> None:
    with make_session() as session:
        with pytest.raises(ValueError, match="Account not found"):
            AccountService(session).delete("nope")


def test_category_update_preserves_sub_categories() -> None:
    with make_session() as session:
        _, _, food, restaurants, _ = setup_ledger(session)

        updated = CategoryService(session).update(
            food.id, CategoryUpdate(name="Food & Dining", icon="🍕")
        )

        assert isinstance(updated, ExpenseCategory)
        assert updated.name == "Food & Dining"
        assert [s.id for s in updated.sub_categories] == [restaurants.id]


def test_category_kinds_load_as_their_own_types() -> None:
    with make_session() as session:
        setup_ledger(session)
        service = CategoryService(session)

        assert all(isinstance(c, ExpenseCategory) for c in service.list_expense())
        assert all(isinstance(c, IncomeCategory) for c in service.list_income())
        assert [c.name for c in service.list_all()] == ["Food", "Salary"]


def test_duplicate_category_name_in_same_kind_is_rejected() -> None:
    with make_session() as session:
        setup_ledger(session)

        with pytest.raises(ValueError, match="already exists"):
            CategoryService(session).create(
                CategoryIn(name="food", kind=CategoryKind.expense)
            )


def test_rename_to_an_existing_category_name_is_rejected() -> None:
    with make_session() as session:
        _, _, food, _, salary = setup_ledger(session)
        service = CategoryService(session)
        travel = service.create(CategoryIn(name="Travel", kind=CategoryKind.expense))

        with pytest.raises(ValueError, match="already exists"):
            service.update(travel.id, CategoryUpdate(name=" FOOD "))

        assert service.update(food.id, CategoryUpdate(name="food")).name == "food"
        assert service.update(salary.id, CategoryUpdate(name="Travel")).name == "Travel"


def test_income_categories_have_no_sub_categories() -> None:
    with make_session() as session:
        *_, salary = setup_ledger(session)

        with pytest.raises(ValueError, match="Only expense categories"):
            CategoryService(session).add_sub_category(
                salary.id, SubCategoryIn(name="Bonus")
            )


def test_category_and_sub_category_delete_guards() -> None:
    with make_session() as session:
        hdfc, _, food, restaurants, salary = setup_ledger(session)
        categories = CategoryService(session)
        coffee = categories.add_sub_category(food.id, SubCategoryIn(name="Coffee"))
        txn = TransactionService(session).create(
            expense_in(hdfc.id, food.id, 450, sub=restaurants.id)
        )

        assert categories.delete_sub_category(food.id, restaurants.id) is False
        assert categories.delete(food.id) is False
        assert categories.delete_sub_category(food.id, coffee.id) is True
        assert categories.delete(salary.id) is True

        TransactionService(session).delete(txn.id)
        assert categories.delete(food.id) is True
        assert categories.list_all() == []


def test_transaction_reference_validation() -> None:
    with make_session() as session:
        hdfc, _, food, restaurants, salary = setup_ledger(session)
        service = TransactionService(session)

        with pytest.raises(ValueError, match="Account not found"):
            service.create(expense_in("ghost", food.id, 100))
        with pytest.raises(ValueError, match="type mismatch"):
            service.create(expense_in(hdfc.id, salary.id, 100))
        with pytest.raises(ValueError, match="does not belong"):
            service.create(expense_in(hdfc.id, food.id, 100, sub="e9s9"))
        assert service.list_all() == []


def test_transaction_shape_is_validated_by_schema() -> None:
    with pytest.raises(ValueError):
        TransactionIn(
            date=date(2026, 2, 1),
            type=TransactionType.transfer,
            account_id="a1",
            to_account_id="a1",
            amount_cents=100,
        )
    with pytest.raises(ValueError):
        TransactionIn(
            date=date(2026, 2, 1),
            type=TransactionType.expense,
            account_id="a1",
            category_id="e1",
            amount_cents=0,
        )
    with pytest.raises(ValueError):
        TransactionIn(
            date=date(2026, 2, 1),
            type=TransactionType.income,
            account_id="a1",
            category_id="i1",
            sub_category_id="e1s1",
            amount_cents=100,
        )


def test_transaction_update_replaces_fields_and_keeps_position() -> None:
    with make_session() as session:
        hdfc, cash, food, restaurants, _ = setup_ledger(session)
        service = TransactionService(session)
        first = service.create(expense_in(hdfc.id, food.id, 100))
        second = service.create(expense_in(hdfc.id, food.id, 200))

        updated = service.update(
            first.id, expense_in(cash.id, food.id, 999, date(2026, 2, 9), restaurants.id)
        )

        assert updated.account_id == cash.id
        assert updated.amount_cents == 999
        assert updated.sub_category_id == restaurants.id
        assert updated.position < second.position
        assert [t.id for t in service.list_all()] == [first.id, second.id]


def test_settings_defaults_and_update() -> None:
    with make_session() as session:
        service = SettingsService(session)
        settings = service.get()

        assert settings.app_name == "My Finance Hub"
        assert settings.ui_mode == UIMode.auto
        assert settings.notifications is False
        assert settings.reminder_times == ["09:00", "21:00"]
        assert settings.sms_detection is True
        assert settings.carry_forward is False

        updated = service.update(
            SettingsIn(reminder_times=["21:00", "07:30", "21:00"], carry_forward=True)
        )

        assert updated.reminder_times == ["07:30", "21:00"]
        assert updated.carry_forward is True
        assert updated.app_name == "My Finance Hub"


def test_settings_reject_bad_reminder_times() -> None:
    with pytest.raises(ValueError):
        SettingsIn(reminder_times=["25:00"])


def test_auto_ui_mode_follows_the_system_preference() -> None:
    assert resolve_ui_mode(UIMode.auto, system_dark=True) == UIMode.dark
    assert resolve_ui_mode(UIMode.auto, system_dark=False) == UIMode.light
    assert resolve_ui_mode(UIMode.ocean, system_dark=True) == UIMode.ocean


def test_ledger_service_summary_honours_carry_forward() -> None:
    now = datetime(2026, 2, 15, 12, 0)
    with make_session() as session:
        hdfc, _, food, _, salary = setup_ledger(session)
        transactions = TransactionService(session)
        transactions.create(
            TransactionIn(
                date=date(2026, 1, 20),
                type=TransactionType.income,
                account_id=hdfc.id,
                category_id=salary.id,
                amount_cents=100000,
            )
        )
        transactions.create(expense_in(hdfc.id, food.id, 30000, date(2026, 2, 10)))
        service = LedgerService(session, now=now)
        period = service.period("mtd")

        plain = service.summary(period)
        assert plain.opening_balance_cents == 0
        assert plain.expense_cents == 30000
        assert plain.balances[hdfc.id] == 50000 + 100000 - 30000

        SettingsService(session).update(SettingsIn(carry_forward=True))
        carried = service.summary(period)
        assert carried.opening_balance_cents == 50000 + 100000
        assert carried.closing_balance_cents == 120000


def test_ledger_service_breakdown_and_export_rows() -> None:
    now = datetime(2026, 2, 15, 12, 0)
    with make_session() as session:
        hdfc, _, food, restaurants, _ = setup_ledger(session)
        transactions = TransactionService(session)
        transactions.create(expense_in(hdfc.id, food.id, 700, sub=restaurants.id))
        transactions.create(expense_in(hdfc.id, food.id, 300))
        service = LedgerService(session, now=now)
        period = service.period("mtd")

        breakdown = service.category_breakdown(period)
        assert [(b.name, b.value_cents) for b in breakdown] == [("Food", 1000)]

        subs = service.sub_category_breakdown(period, food.id)
        assert [(s.name, s.value_cents) for s in subs] == [("Restaurants", 700)]

        rows = service.export_rows(period)
        assert [r.category for r in rows] == ["Food / Restaurants", "Food"]


def test_seed_defaults_only_fills_an_empty_database() -> None:
    with make_session() as session:
        assert seed_defaults(session) is True
        assert seed_defaults(session) is False

        categories = CategoryService(session)
        assert len(AccountService(session).list_all()) == 4
        assert len(categories.list_expense()) == 11
        assert len(categories.list_income()) == 8
        assert categories.get("e1").sub_categories[0].name == "Restaurants"


def test_sms_draft_suggests_a_close_category() -> None:
    with make_session() as session:
        CategoryService(session).create(
            CategoryIn(name="Swiggy", kind=CategoryKind.expense)
        )

        draft = SMSService(session).draft(
            "Rs.450.00 debited from A/c XX1234 to SWIGGY on 12-02-26"
        )

        assert draft["type"] == "expense"
        assert draft["amount_cents"] == 45000
        assert draft["note"] == "SWIGGY"
        assert draft["suggested_category_id"] is not None


def test_sms_draft_is_disabled_by_settings() -> None:
    with make_session() as session:
        SettingsService(session).update(SettingsIn(sms_detection=False))

        assert (
            SMSService(session).draft("Rs.450.00 debited from A/c XX1234 to SWIGGY")
            is None
        )
