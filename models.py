import json
import secrets
from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base


def new_id(prefix: str = "x") -> str:
    return f"{prefix}{secrets.token_hex(5)}"


class TransactionType(str, Enum):
    income = "income"
    expense = "expense"
    transfer = "transfer"


class CategoryKind(str, Enum):
    expense = "expense"
    income = "income"


class UIMode(str, Enum):
    auto = "auto"
    dark = "dark"
    light = "light"
    ocean = "ocean"
    forest = "forest"
    sunset = "sunset"
    midnight = "midnight"
    rose = "rose"


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class Account(Base, TimestampMixin):
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String(16))
    color: Mapped[Optional[str]] = mapped_column(String(9))
    opening_balance_cents: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class Category(Base, TimestampMixin):
    """Shared base of expense and income categories (single-table inheritance)."""

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    kind: Mapped[CategoryKind] = mapped_column(SAEnum(CategoryKind), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String(16))
    color: Mapped[Optional[str]] = mapped_column(String(9))
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __mapper_args__ = {"polymorphic_on": "kind"}
    __table_args__ = (Index("ix_categories_kind_order", "kind", "order"),)


class ExpenseCategory(Category):
    sub_categories: Mapped[list["SubCategory"]] = relationship(
        "SubCategory",
        back_populates="category",
        cascade="all, delete-orphan",
        order_by="SubCategory.order",
    )

    __mapper_args__ = {"polymorphic_identity": CategoryKind.expense}


class IncomeCategory(Category):
    __mapper_args__ = {"polymorphic_identity": CategoryKind.income}


class SubCategory(Base, TimestampMixin):
    __tablename__ = "sub_categories"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    category_id: Mapped[str] = mapped_column(
        ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    category: Mapped["ExpenseCategory"] = relationship(
        "ExpenseCategory", back_populates="sub_categories"
    )


class Transaction(Base, TimestampMixin):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    type: Mapped[TransactionType] = mapped_column(
        SAEnum(TransactionType), nullable=False
    )
    # References are plain ids; deletes are guarded in the services instead.
    account_id: Mapped[str] = mapped_column(String(32), nullable=False)
    to_account_id: Mapped[Optional[str]] = mapped_column(String(32))
    category_id: Mapped[Optional[str]] = mapped_column(String(32))
    sub_category_id: Mapped[Optional[str]] = mapped_column(String(32))
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_transactions_date", "date"),
        Index("ix_transactions_account", "account_id"),
        Index("ix_transactions_to_account", "to_account_id"),
        Index("ix_transactions_category", "category_id"),
        Index("ix_transactions_sub_category", "sub_category_id"),
        CheckConstraint("amount_cents > 0", name="ck_transactions_amount_positive"),
        CheckConstraint(
            "type != 'transfer' OR "
            "(to_account_id IS NOT NULL AND to_account_id != account_id)",
            name="ck_transactions_transfer_accounts",
        ),
    )


DEFAULT_REMINDER_TIMES = ["09:00", "21:00"]


class AppSettings(Base, TimestampMixin):
    __tablename__ = "app_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    app_name: Mapped[str] = mapped_column(
        String(60), nullable=False, default="My Finance Hub"
    )
    ui_mode: Mapped[UIMode] = mapped_column(
        SAEnum(UIMode), nullable=False, default=UIMode.auto
    )
    notifications: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reminder_times_json: Mapped[Optional[str]] = mapped_column(Text)
    sms_detection: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    carry_forward: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @property
    def reminder_times(self) -> list[str]:
        if self.reminder_times_json is None:
            return list(DEFAULT_REMINDER_TIMES)
        return list(json.loads(self.reminder_times_json))

    @reminder_times.setter
    def reminder_times(self, value: list[str]) -> None:
        self.reminder_times_json = json.dumps(sorted(set(value)))
