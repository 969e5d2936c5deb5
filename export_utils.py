import csv
import re
from datetime import datetime
from decimal import Decimal, DecimalException, InvalidOperation
from io import BytesIO, StringIO
from pathlib import Path
from typing import Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape
from openpyxl import Workbook
from openpyxl.styles import Font

from ledger import ExportRow
from models import TransactionType

EXPORT_HEADERS = ["Date", "Amount", "Category", "Remarks", "Type"]
XLSX_COLUMN_WIDTHS = {"A": 14, "B": 14, "C": 32, "D": 30, "E": 10}
TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def sanitize_csv_value(value: str) -> str:
    """
    Sanitize CSV values to prevent formula injection by prefixing dangerous patterns with tab.
    """
    if not value or value.strip() == "":
        return ""

    value = value.strip()

    formula_triggers = ("=", "+", "-", "@", "\t", "\r")

    if value.startswith(formula_triggers):
        return "\t" + value

    dangerous_patterns = [
        r"^cmd\s*",
        r"^powershell\s*",
        r"^bash\s*",
        r"^http[s]?://",
    ]

    for pattern in dangerous_patterns:
        if re.match(pattern, value, re.IGNORECASE):
            return "\t" + value

    return value


def parse_amount(value: str, *, allow_negative: bool = False) -> int:
    clean = value.strip()
    for symbol in ("₹", "€", "$", "INR", "Rs.", "Rs", " "):
        clean = clean.replace(symbol, "")
    clean = clean.replace(",", "")
    try:
        amount = Decimal(clean)
    except InvalidOperation as exc:
        raise ValueError("Invalid amount") from exc
    if not amount.is_finite():
        raise ValueError("Invalid amount")
    try:
        cents = int((amount * 100).quantize(Decimal("1")))
    except DecimalException as exc:
        raise ValueError("Invalid amount") from exc
    if cents < 0 and not allow_negative:
        raise ValueError("Amount must be positive")
    return cents


def format_amount(cents: int, symbol: str = "") -> str:
    sign = "-" if cents < 0 else ""
    return f"{sign}{symbol}{abs(cents) / 100:,.2f}"


def type_label(txn_type: TransactionType) -> str:
    return txn_type.value.capitalize()


def report_totals(rows: Sequence[ExportRow]) -> dict[str, int]:
    income = sum(r.amount_cents for r in rows if r.amount_cents > 0)
    expense = sum(-r.amount_cents for r in rows if r.amount_cents < 0)
    return {
        "income_cents": income,
        "expense_cents": expense,
        "net_cents": income - expense,
        "count": len(rows),
    }


def export_csv(rows: Sequence[ExportRow]) -> str:
    output = StringIO()
    # UTF-8 BOM
    output.write("\ufeff")
    writer = csv.writer(output)
    writer.writerow(EXPORT_HEADERS)
    for row in rows:
        writer.writerow(
            [
                row.date.isoformat(),
                f"{row.amount_cents / 100:.2f}",
                sanitize_csv_value(row.category),
                sanitize_csv_value(row.note),
                type_label(row.type),
            ]
        )
    return output.getvalue()


def export_xlsx(rows: Sequence[ExportRow]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Transactions"
    ws.append(EXPORT_HEADERS)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for row in rows:
        ws.append(
            [
                row.date,
                row.amount_cents / 100,
                row.category,
                row.note,
                type_label(row.type),
            ]
        )
    for column, width in XLSX_COLUMN_WIDTHS.items():
        ws.column_dimensions[column].width = width

    bio = BytesIO()
    wb.save(bio)
    return bio.getvalue()


def _report_env() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
    )
    env.filters["money"] = format_amount
    env.filters["type_label"] = type_label
    return env


def render_report_html(
    rows: Sequence[ExportRow],
    *,
    app_name: str,
    period_label: str,
    currency_symbol: str = "",
    generated_at: Optional[datetime] = None,
) -> str:
    template = _report_env().get_template("report.html")
    return template.render(
        rows=rows,
        totals=report_totals(rows),
        app_name=app_name,
        period_label=period_label,
        currency=currency_symbol,
        generated_at=generated_at or datetime.now(),
    )
