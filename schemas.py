import re
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from models import CategoryKind, TransactionType, UIMode

NOTE_MAX_LENGTH = 200

HHMM_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class AccountIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    icon: Optional[str] = Field(default="🏦", max_length=16)
    color: Optional[str] = Field(default="#10b981", max_length=9)
    opening_balance_cents: int = 0


class AccountUpdate(BaseModel):
    """Partial account edit; unset fields keep their stored value."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    icon: Optional[str] = Field(default=None, max_length=16)
    color: Optional[str] = Field(default=None, max_length=9)
    opening_balance_cents: Optional[int] = None


class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    kind: CategoryKind
    icon: Optional[str] = Field(default=None, max_length=16)
    color: Optional[str] = Field(default="#10b981", max_length=9)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    icon: Optional[str] = Field(default=None, max_length=16)
    color: Optional[str] = Field(default=None, max_length=9)


class SubCategoryIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class TransactionIn(BaseModel):
    date: date
    type: TransactionType
    account_id: str = Field(..., min_length=1)
    to_account_id: Optional[str] = None
    category_id: Optional[str] = None
    sub_category_id: Optional[str] = None
    amount_cents: int = Field(..., gt=0)
    note: Optional[str] = Field(default=None, max_length=NOTE_MAX_LENGTH)

    @model_validator(mode="after")
    def _check_shape(self) -> "TransactionIn":
        if self.type == TransactionType.transfer:
            if not self.to_account_id:
                raise ValueError("Transfer requires a destination account")
            if self.to_account_id == self.account_id:
                raise ValueError("Cannot transfer to the same account")
            if self.category_id or self.sub_category_id:
                raise ValueError("Transfers do not carry a category")
            return self
        if self.to_account_id:
            raise ValueError("Only transfers have a destination account")
        if not self.category_id:
            raise ValueError("Category is required")
        if self.sub_category_id and self.type != TransactionType.expense:
            raise ValueError("Only expenses can have a sub category")
        return self


class SettingsIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    app_name: Optional[str] = Field(default=None, min_length=1, max_length=60)
    ui_mode: Optional[UIMode] = None
    notifications: Optional[bool] = None
    reminder_times: Optional[list[str]] = None
    sms_detection: Optional[bool] = None
    carry_forward: Optional[bool] = None

    @field_validator("reminder_times")
    @classmethod
    def _check_times(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        if value is None:
            return value
        for item in value:
            if not HHMM_RE.match(item):
                raise ValueError(f"Invalid reminder time: {item}")
        return sorted(set(value))


class SMSIn(BaseModel):
    text: str = Field(..., max_length=1000)
