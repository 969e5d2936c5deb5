import re
from dataclasses import dataclass
from typing import Optional

from export_utils import parse_amount
from models import TransactionType

MIN_SMS_LENGTH = 15
DEFAULT_NOTE = "SMS Transaction"

AMOUNT_RE = re.compile(r"(?:Rs\.?|INR|₹)\s*(\d+(?:\.\d{1,2})?)", re.IGNORECASE)
DEBIT_RE = re.compile(r"debited|debit|spent|paid|payment|withdrawn|sent", re.IGNORECASE)
CREDIT_RE = re.compile(r"credited|credit|received|deposited|refund", re.IGNORECASE)
MERCHANT_RE = re.compile(
    r"(?:at|to|from|for)\s+([A-Za-z0-9 &'-]{2,30}?)(?:\s+on|\s+via|\s+ref|\.|\s*$)",
    re.IGNORECASE,
)
HANDLE_RE = re.compile(r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+)")


@dataclass(frozen=True)
class SMSDraft:
    type: TransactionType
    amount_cents: int
    note: str


def parse_sms(text: Optional[str]) -> Optional[SMSDraft]:
    """Extract a transaction draft from a bank/UPI SMS, or None if nothing matches."""
    if not text or len(text) < MIN_SMS_LENGTH:
        return None
    clean = text.replace(",", "")

    amount_match = AMOUNT_RE.search(clean)
    if not amount_match:
        return None
    amount_cents = parse_amount(amount_match.group(1))
    if amount_cents <= 0:
        return None

    is_debit = bool(DEBIT_RE.search(clean))
    is_credit = bool(CREDIT_RE.search(clean))
    if not is_debit and not is_credit:
        return None

    note = ""
    merchant = MERCHANT_RE.search(clean)
    if merchant:
        note = merchant.group(1).strip()
    else:
        handle = HANDLE_RE.search(clean)
        if handle:
            note = handle.group(1)

    return SMSDraft(
        type=TransactionType.expense if is_debit else TransactionType.income,
        amount_cents=amount_cents,
        note=note or DEFAULT_NOTE,
    )
