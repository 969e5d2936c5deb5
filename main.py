import json
import logging
from dataclasses import asdict
from datetime import datetime

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, Response, StreamingResponse
from sqlalchemy.orm import Session

import ledger
from config import get_settings
from csrf import generate_csrf_token, require_csrf
from database import get_db, init_db
from filters import TransactionFilters
from models import CategoryKind, TransactionType
from periods import PERIODS, Period, resolve_period
from scheduler import ReminderScheduler
from schemas import (
    AccountIn,
    AccountUpdate,
    CategoryIn,
    CategoryUpdate,
    SettingsIn,
    SMSIn,
    SubCategoryIn,
    TransactionIn,
)
from services import (
    AccountService,
    BackupService,
    CategoryService,
    ExportService,
    LedgerService,
    SettingsService,
    SMSService,
    TransactionService,
    account_to_dict,
    category_to_dict,
    resolve_ui_mode,
    seed_defaults,
    settings_to_dict,
    transaction_to_dict,
)

logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="My Finance Hub")
csrf_protected = [Depends(require_csrf)]


def _load_app_version() -> str:
    try:
        import tomllib
    except Exception:
        return "unknown"
    try:
        with open("pyproject.toml", "rb") as f:
            data = tomllib.load(f)
        return str(data.get("project", {}).get("version", "unknown"))
    except Exception:
        return "unknown"


APP_VERSION = _load_app_version()

reminder_scheduler = ReminderScheduler()


@app.on_event("startup")
def startup_event():
    init_db()
    reminder_scheduler.start()
    logger.info(f"app_started: version={APP_VERSION}")


@app.on_event("shutdown")
def shutdown_event():
    reminder_scheduler.stop()


def _http_error(exc: ValueError) -> HTTPException:
    status = 404 if "not found" in str(exc).lower() else 400
    return HTTPException(status_code=status, detail=str(exc))


def period_from_request(request: Request) -> Period:
    # Never raises: bad selectors and custom ranges fall back to month-to-date.
    return resolve_period(
        request.query_params.get("period"),
        request.query_params.get("start"),
        request.query_params.get("end"),
    )


def filters_from_request(request: Request) -> TransactionFilters:
    type_param = request.query_params.get("type")
    txn_type = None
    if type_param:
        try:
            txn_type = TransactionType(type_param)
        except ValueError:
            txn_type = None
    return TransactionFilters(
        type=txn_type,
        category_id=request.query_params.get("category") or None,
        sub_category_id=request.query_params.get("sub_category") or None,
        account_id=request.query_params.get("account") or None,
    )


def period_to_dict(period: Period) -> dict[str, object]:
    return {
        "slug": period.slug,
        "start": period.start.date().isoformat(),
        "end": period.end.date().isoformat(),
        "label": period.label,
    }


@app.get("/api/csrf-token")
def api_csrf_token():
    return {"token": generate_csrf_token()}


@app.get("/api/periods")
def api_periods():
    return [{"slug": slug, "label": label} for slug, label in PERIODS]


@app.get("/api/accounts")
def api_accounts(db: Session = Depends(get_db)):
    snap = LedgerService(db).snapshot()
    balances = ledger.account_balances(snap.accounts, snap.transactions)
    return [
        {**account_to_dict(a), "balance_cents": balances.get(a.id, 0)}
        for a in snap.accounts
    ]


@app.post("/api/accounts", status_code=201, dependencies=csrf_protected)
def api_create_account(data: AccountIn, db: Session = Depends(get_db)):
    return account_to_dict(AccountService(db).create(data))


@app.post("/api/accounts/{account_id}", dependencies=csrf_protected)
def api_update_account(
    account_id: str, data: AccountUpdate, db: Session = Depends(get_db)
):
    try:
        account = AccountService(db).update(account_id, data)
    except ValueError as exc:
        raise _http_error(exc) from exc
    return account_to_dict(account)


@app.post("/api/accounts/{account_id}/delete", dependencies=csrf_protected)
def api_delete_account(account_id: str, db: Session = Depends(get_db)):
    try:
        deleted = AccountService(db).delete(account_id)
    except ValueError as exc:
        raise _http_error(exc) from exc
    if not deleted:
        raise HTTPException(
            status_code=409, detail="Account has transactions"
        )
    return Response(status_code=204)


@app.get("/api/categories")
def api_categories(request: Request, db: Session = Depends(get_db)):
    service = CategoryService(db)
    kind = request.query_params.get("kind")
    if kind == CategoryKind.expense.value:
        categories = service.list_expense()
    elif kind == CategoryKind.income.value:
        categories = service.list_income()
    else:
        categories = service.list_all()
    return [category_to_dict(c) for c in categories]


@app.post("/api/categories", status_code=201, dependencies=csrf_protected)
def api_create_category(data: CategoryIn, db: Session = Depends(get_db)):
    try:
        category = CategoryService(db).create(data)
    except ValueError as exc:
        raise _http_error(exc) from exc
    return category_to_dict(category)


@app.post("/api/categories/{category_id}", dependencies=csrf_protected)
def api_update_category(
    category_id: str, data: CategoryUpdate, db: Session = Depends(get_db)
):
    try:
        category = CategoryService(db).update(category_id, data)
    except ValueError as exc:
        raise _http_error(exc) from exc
    return category_to_dict(category)


@app.post("/api/categories/{category_id}/delete", dependencies=csrf_protected)
def api_delete_category(category_id: str, db: Session = Depends(get_db)):
    try:
        deleted = CategoryService(db).delete(category_id)
    except ValueError as exc:
        raise _http_error(exc) from exc
    if not deleted:
        raise HTTPException(
            status_code=409, detail="Category has transactions"
        )
    return Response(status_code=204)


@app.post(
    "/api/categories/{category_id}/sub-categories",
    status_code=201,
    dependencies=csrf_protected,
)
def api_add_sub_category(
    category_id: str, data: SubCategoryIn, db: Session = Depends(get_db)
):
    try:
        sub = CategoryService(db).add_sub_category(category_id, data)
    except ValueError as exc:
        raise _http_error(exc) from exc
    return {"id": sub.id, "category_id": sub.category_id, "name": sub.name}


@app.post(
    "/api/categories/{category_id}/sub-categories/{sub_category_id}",
    dependencies=csrf_protected,
)
def api_rename_sub_category(
    category_id: str,
    sub_category_id: str,
    data: SubCategoryIn,
    db: Session = Depends(get_db),
):
    try:
        sub = CategoryService(db).rename_sub_category(
            category_id, sub_category_id, data
        )
    except ValueError as exc:
        raise _http_error(exc) from exc
    return {"id": sub.id, "category_id": sub.category_id, "name": sub.name}


@app.post(
    "/api/categories/{category_id}/sub-categories/{sub_category_id}/delete",
    dependencies=csrf_protected,
)
def api_delete_sub_category(
    category_id: str, sub_category_id: str, db: Session = Depends(get_db)
):
    try:
        deleted = CategoryService(db).delete_sub_category(category_id, sub_category_id)
    except ValueError as exc:
        raise _http_error(exc) from exc
    if not deleted:
        raise HTTPException(
            status_code=409, detail="Sub category has transactions"
        )
    return Response(status_code=204)


@app.get("/api/transactions")
def api_transactions(request: Request, db: Session = Depends(get_db)):
    period = period_from_request(request)
    filters = filters_from_request(request)
    items = TransactionService(db).for_period(period, filters)
    return {
        "period": period_to_dict(period),
        "items": [transaction_to_dict(txn) for txn in items],
        "net_cents": sum(ledger.signed_amount(txn) for txn in items),
    }


@app.post("/api/transactions", status_code=201, dependencies=csrf_protected)
def api_create_transaction(data: TransactionIn, db: Session = Depends(get_db)):
    try:
        txn = TransactionService(db).create(data)
    except ValueError as exc:
        raise _http_error(exc) from exc
    return transaction_to_dict(txn)


@app.get("/api/transactions/{transaction_id}")
def api_get_transaction(transaction_id: str, db: Session = Depends(get_db)):
    try:
        txn = TransactionService(db).get(transaction_id)
    except ValueError as exc:
        raise _http_error(exc) from exc
    return transaction_to_dict(txn)


@app.post("/api/transactions/{transaction_id}", dependencies=csrf_protected)
def api_update_transaction(
    transaction_id: str, data: TransactionIn, db: Session = Depends(get_db)
):
    try:
        txn = TransactionService(db).update(transaction_id, data)
    except ValueError as exc:
        raise _http_error(exc) from exc
    return transaction_to_dict(txn)


@app.post("/api/transactions/{transaction_id}/delete", dependencies=csrf_protected)
def api_delete_transaction(transaction_id: str, db: Session = Depends(get_db)):
    try:
        TransactionService(db).delete(transaction_id)
    except ValueError as exc:
        raise _http_error(exc) from exc
    return Response(status_code=204)


@app.get("/api/summary")
def api_summary(request: Request, db: Session = Depends(get_db)):
    period = period_from_request(request)
    summary = LedgerService(db).summary(period)
    return {"period": period_to_dict(period), **asdict(summary)}


@app.get("/api/category-breakdown")
def api_category_breakdown(request: Request, db: Session = Depends(get_db)):
    period = period_from_request(request)
    kind = TransactionType.expense
    if request.query_params.get("kind") == TransactionType.income.value:
        kind = TransactionType.income
    items = LedgerService(db).category_breakdown(period, kind)
    return [asdict(item) for item in items]


@app.get("/api/sub-category-breakdown")
def api_sub_category_breakdown(request: Request, db: Session = Depends(get_db)):
    period = period_from_request(request)
    items = LedgerService(db).sub_category_breakdown(
        period, request.query_params.get("category") or None
    )
    return [asdict(item) for item in items]


@app.get("/api/drilldown")
def api_drilldown(request: Request, db: Session = Depends(get_db)):
    period = period_from_request(request)
    items = LedgerService(db).drilldown(
        period,
        sub_category_id=request.query_params.get("sub_category") or None,
        category_id=request.query_params.get("category") or None,
    )
    return {
        "items": [transaction_to_dict(txn) for txn in items],
        "total_cents": ledger.drilldown_total(items),
    }


@app.get("/api/trend")
def api_trend(request: Request, db: Session = Depends(get_db)):
    try:
        months = int(request.query_params.get("months", "12"))
    except ValueError:
        months = 12
    months = min(max(months, 1), 120)
    category_id = request.query_params.get("category") or None
    service = LedgerService(db)
    rows = service.trend(category_id, months)
    return {
        "rows": [
            {
                "month": row.month_key,
                "label": row.label,
                "values": row.values,
                "total_cents": row.total_cents,
            }
            for row in rows
        ],
        "categories": [
            {"id": item.id, "name": item.name, "color": getattr(item, "color", None)}
            for item in service.trend_legend(category_id)
        ],
    }


@app.get("/api/settings")
def api_get_settings(system_dark: bool = False, db: Session = Depends(get_db)):
    settings = SettingsService(db).get()
    data = settings_to_dict(settings)
    data["resolved_ui_mode"] = resolve_ui_mode(settings.ui_mode, system_dark).value
    return data


@app.post("/api/settings", dependencies=csrf_protected)
def api_update_settings(data: SettingsIn, db: Session = Depends(get_db)):
    settings = SettingsService(db).update(data)
    reminder_scheduler.sync(settings)
    return settings_to_dict(settings)


@app.post("/api/sms/parse", dependencies=csrf_protected)
def api_parse_sms(data: SMSIn, db: Session = Depends(get_db)):
    return {"draft": SMSService(db).draft(data.text)}


def _export_filename(period: Period, extension: str) -> str:
    return f"transactions_{period.start:%Y-%m-%d}_{period.end:%Y-%m-%d}.{extension}"


@app.get("/transactions/export.csv")
def export_csv_endpoint(request: Request, db: Session = Depends(get_db)):
    period = period_from_request(request)
    csv_text = ExportService(db).csv(period, filters_from_request(request))
    return StreamingResponse(
        iter([csv_text]),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{_export_filename(period, "csv")}"'
        },
    )


@app.get("/transactions/export.xlsx")
def export_xlsx_endpoint(request: Request, db: Session = Depends(get_db)):
    period = period_from_request(request)
    content = ExportService(db).xlsx(period, filters_from_request(request))
    return Response(
        content=content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={
            "Content-Disposition": f'attachment; filename="{_export_filename(period, "xlsx")}"'
        },
    )


@app.get("/transactions/report.html", response_class=HTMLResponse)
def report_html_endpoint(request: Request, db: Session = Depends(get_db)):
    period = period_from_request(request)
    return ExportService(db).report_html(
        period,
        filters_from_request(request),
        currency_symbol=get_settings().currency_symbol,
    )


@app.get("/transactions/export.pdf")
def export_pdf_endpoint(request: Request, db: Session = Depends(get_db)):
    period = period_from_request(request)
    html = ExportService(db).report_html(
        period,
        filters_from_request(request),
        currency_symbol=get_settings().currency_symbol,
    )
    try:
        from weasyprint import HTML
    except Exception as exc:
        raise HTTPException(
            status_code=500,
            detail="PDF export requires WeasyPrint system dependencies; install them for your OS and retry.",
        ) from exc

    start_time = datetime.now()
    pdf_bytes = HTML(string=html, base_url=str(request.base_url)).write_pdf()
    pdf_duration = (datetime.now() - start_time).total_seconds()
    logger.info(
        f"report_generated: period={period.slug} "
        f"pdf_size_bytes={len(pdf_bytes)} pdf_duration={pdf_duration:.2f}s"
    )
    return StreamingResponse(
        iter([pdf_bytes]),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{_export_filename(period, "pdf")}"',
            "Content-Length": str(len(pdf_bytes)),
        },
    )


@app.get("/admin/backup")
def admin_backup(db: Session = Depends(get_db)):
    payload = BackupService(db).export()
    filename = f"finance_hub_backup_{datetime.now():%Y-%m-%d}.json"
    return JSONResponse(
        content=payload,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/admin/restore", dependencies=csrf_protected)
async def admin_restore(file: UploadFile = File(...), db: Session = Depends(get_db)):
    raw = await file.read()
    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise HTTPException(status_code=400, detail="Invalid backup file") from exc
    try:
        counts = BackupService(db).restore(payload)
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    reminder_scheduler.sync(SettingsService(db).get())
    return {"restored": counts}


@app.post("/admin/seed", dependencies=csrf_protected)
def admin_seed(db: Session = Depends(get_db)):
    return {"seeded": seed_defaults(db)}


def main():
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
