from __future__ import annotations

from dataclasses import asdict
import logging
import math
from typing import List, Literal, Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, File, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response
from fastapi.encoders import jsonable_encoder
from pydantic import ValidationError

from kiosc_api.schemas import (
    BudgetIn,
    DashboardFiltersModel,
    InvoiceIn,
    InvoiceStatusUpdate,
    SettingsUpdate,
    TransactionIn,
)
from kiosc_core.budget import compute_budget
from kiosc_core.config import EXPORT_FILENAME, LOAD_SAMPLE_DATA, configure_logging, cors_origins
from kiosc_core.data import available_years, prepare_context
from kiosc_core.errors import KioscError, RecordNotFound
from kiosc_core.filters import DashboardFilters, normalize_filters
from kiosc_core.metrics_invoices import compute_invoices, compute_payments, line_item
from kiosc_core.metrics_overview import compute_overview
from kiosc_core.metrics_programs import compute_program_detail, compute_programs
from kiosc_core.metrics_reports import category_expenses, compute_reports, income_expense_by_period, monthly_summary
from kiosc_core.metrics_transactions import compute_calendar, compute_transactions
from kiosc_core.models import Invoice, Transaction, to_record
from kiosc_core.store import FinanceStore
from kiosc_core.templates import TEMPLATES, build_template, get_template
from kiosc_core.workbook import is_excel_filename

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

configure_logging()
app = FastAPI(title="KIOSC Finance API", version="0.1.0")
logger = logging.getLogger(__name__)
store = FinanceStore(with_sample=LOAD_SAMPLE_DATA)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: DashboardFiltersModel) -> DashboardFilters:
    return normalize_filters(model.model_dump())


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _error(route: str, exc: Exception) -> JSONResponse:
    """Map an exception raised inside ``route`` onto an error response."""
    content = {"error": str(exc), "type": type(exc).__name__}
    if isinstance(exc, RecordNotFound):
        return JSONResponse(status_code=404, content=content)
    if isinstance(exc, (KioscError, ValidationError)):
        logger.warning("%s rejected: %s", route, exc)
        return JSONResponse(status_code=400, content=content)
    logger.exception("%s failed", route)
    return JSONResponse(status_code=500, content=content)


def _xlsx(payload: bytes, filename: str) -> Response:
    return Response(
        content=payload,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _data_summary(data) -> dict:
    return {
        "source": store.source,
        "counts": {
            "programs": len(data.programs),
            "budget_tracking": len(data.budget_tracking),
            "transactions": len(data.transactions),
            "suppliers": len(data.suppliers),
            "invoices": len(data.invoices),
        },
    }


# ---------------- Import / export ----------------
@app.post("/import")
async def import_workbook(file: UploadFile = File(...)):
    try:
        if not is_excel_filename(file.filename or ""):
            raise KioscError("Please upload an Excel file (.xlsx or .xlsm)")
        data = store.load_workbook(await file.read(), file.filename)
        return _json(_data_summary(data))
    except Exception as exc:
        return _error("import_workbook", exc)


@app.post("/import/templates")
async def import_templates(files: List[UploadFile] = File(...)):
    try:
        payloads = [(f.filename or "", await f.read()) for f in files]
        data = store.load_templates(payloads)
        return _json(_data_summary(data))
    except Exception as exc:
        return _error("import_templates", exc)


@app.get("/export")
def export_workbook():
    try:
        return _xlsx(store.export(), EXPORT_FILENAME)
    except Exception as exc:
        return _error("export_workbook", exc)


@app.get("/templates")
def list_templates():
    return _json(
        {
            "templates": [
                {"id": t.id, "name": t.name, "description": t.description, "filename": t.filename}
                for t in TEMPLATES.values()
            ]
        }
    )


@app.get("/templates/{template_id}")
def download_template(template_id: str, include_samples: bool = Query(default=True)):
    try:
        template = get_template(template_id)
        return _xlsx(build_template(template_id, include_samples=include_samples), template.filename)
    except Exception as exc:
        return _error("download_template", exc)


# ---------------- Raw data and meta ----------------
@app.get("/data")
def get_data():
    try:
        data = store.get_data()
        return _json(
            {
                "programs": [to_record(p) for p in data.programs],
                "budget_tracking": [to_record(b) for b in data.budget_tracking],
                "transactions": [to_record(t) for t in data.transactions],
                "suppliers": [to_record(s) for s in data.suppliers],
                "invoices": [to_record(i) for i in data.invoices],
            }
        )
    except Exception as exc:
        return _error("get_data", exc)


@app.get("/meta/programs")
def meta_programs():
    try:
        return _json({"programs": [p.name for p in store.get_data().programs]})
    except Exception as exc:
        return _error("meta_programs", exc)


@app.get("/meta/categories")
def meta_categories():
    try:
        return _json({"categories": store.categories()})
    except Exception as exc:
        return _error("meta_categories", exc)


@app.get("/meta/years")
def meta_years():
    try:
        return _json({"years": available_years(store.get_data().transactions)})
    except Exception as exc:
        return _error("meta_years", exc)


# ---------------- Dashboard pages ----------------
@app.post("/overview")
def overview(filters: DashboardFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, store.get_data(), settings=store.settings)
        return _json(compute_overview(f, ctx))
    except Exception as exc:
        return _error("overview", exc)


@app.post("/budget")
def budget(filters: DashboardFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, store.get_data(), settings=store.settings)
        return _json(compute_budget(f, ctx))
    except Exception as exc:
        return _error("budget", exc)


@app.post("/programs")
def programs(filters: DashboardFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, store.get_data(), settings=store.settings)
        return _json(compute_programs(f, ctx))
    except Exception as exc:
        return _error("programs", exc)


@app.get("/programs/{name}")
def program_detail(name: str):
    try:
        f = normalize_filters({})
        ctx = prepare_context(f, store.get_data(), settings=store.settings)
        return _json(compute_program_detail(name, ctx))
    except Exception as exc:
        return _error("program_detail", exc)


@app.post("/payments")
def payments(filters: DashboardFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, store.get_data(), settings=store.settings)
        return _json(compute_payments(f, ctx))
    except Exception as exc:
        return _error("payments", exc)


@app.post("/reports")
def reports(filters: DashboardFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, store.get_data(), settings=store.settings)
        return _json(compute_reports(f, ctx))
    except Exception as exc:
        return _error("reports", exc)


@app.post("/reports/income-expense")
def report_income_expense(
    filters: DashboardFiltersModel,
    time_frame: Optional[Literal["monthly", "quarterly", "yearly"]] = Query(default=None),
):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, store.get_data(), settings=store.settings)
        periods = income_expense_by_period(ctx["transactions_year_df"], time_frame or f.time_frame)
        return _json({"filters": asdict(f), "periods": periods.to_dict(orient="records")})
    except Exception as exc:
        return _error("report_income_expense", exc)


@app.post("/reports/monthly-summary")
def report_monthly_summary(filters: DashboardFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, store.get_data(), settings=store.settings)
        return _json({"filters": asdict(f), "months": monthly_summary(ctx["transactions_df"], f.year)})
    except Exception as exc:
        return _error("report_monthly_summary", exc)


@app.post("/reports/category-expenses")
def report_category_expenses(filters: DashboardFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, store.get_data(), settings=store.settings)
        return _json({"filters": asdict(f), "categories": category_expenses(ctx["transactions_year_df"])})
    except Exception as exc:
        return _error("report_category_expenses", exc)


# ---------------- Transactions ----------------
@app.post("/transactions/search")
def transactions(filters: DashboardFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, store.get_data(), settings=store.settings)
        return _json(compute_transactions(f, ctx))
    except Exception as exc:
        return _error("transactions", exc)


@app.post("/calendar")
def transaction_calendar(
    filters: DashboardFiltersModel,
    year: Optional[int] = Query(default=None, ge=1, le=9999),
    month: Optional[int] = Query(default=None, ge=1, le=12),
):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, store.get_data(), settings=store.settings)
        return _json(compute_calendar(f, ctx, year=year, month=month))
    except Exception as exc:
        return _error("transaction_calendar", exc)


# ---------------- Mutations ----------------
@app.post("/transactions")
def add_transaction(body: TransactionIn):
    try:
        tx = store.add_transaction(Transaction(**body.model_dump()))
        return _json(to_record(tx), status_code=201)
    except Exception as exc:
        return _error("add_transaction", exc)


@app.post("/budgets")
def upsert_budget(body: BudgetIn):
    try:
        changes = body.model_dump(exclude_none=True)
        program = changes.pop("program")
        return _json(to_record(store.upsert_budget(program, **changes)))
    except Exception as exc:
        return _error("upsert_budget", exc)


@app.get("/invoices")
def invoices(
    search: str = Query(default=""),
    program: str = Query(default="All"),
    status: str = Query(default="All"),
):
    try:
        f = normalize_filters({"search": search, "program": program, "payment_status": status})
        ctx = prepare_context(f, store.get_data(), settings=store.settings)
        return _json(compute_invoices(f, ctx))
    except Exception as exc:
        return _error("invoices", exc)


@app.post("/invoices")
def create_invoice(body: InvoiceIn):
    try:
        raw = body.model_dump()
        items = [line_item(**item) for item in raw.pop("items")]
        invoice = store.create_invoice(Invoice(id=0, items=items, **raw))
        return _json(to_record(invoice), status_code=201)
    except Exception as exc:
        return _error("create_invoice", exc)


@app.patch("/invoices/{invoice_id}")
def update_invoice_status(invoice_id: int, body: InvoiceStatusUpdate):
    try:
        invoice = store.update_invoice_status(invoice_id, body.status, payment_date=body.payment_date)
        return _json(to_record(invoice))
    except Exception as exc:
        return _error("update_invoice_status", exc)


@app.delete("/invoices/{invoice_id}")
def delete_invoice(invoice_id: int):
    try:
        store.delete_invoice(invoice_id)
        return _json({"deleted": invoice_id})
    except Exception as exc:
        return _error("delete_invoice", exc)


# ---------------- Settings ----------------
@app.get("/settings")
def get_settings():
    return _json(store.settings.model_dump())


@app.put("/settings")
def update_settings(body: SettingsUpdate):
    try:
        return _json(store.update_settings(body.model_dump(exclude_none=True)).model_dump())
    except Exception as exc:
        return _error("update_settings", exc)


@app.post("/settings/reset")
def reset_settings():
    return _json(store.reset_settings().model_dump())
