from datetime import date

import pytest

from kiosc_core.data import categories, prepare_context, transactions_frame
from kiosc_core.errors import RecordNotFound
from kiosc_core.filters import normalize_filters
from kiosc_core.metrics_invoices import (
    SENT,
    compute_invoices,
    compute_payments,
    compute_totals,
    derive_invoices,
    filter_payments,
    invoice_widget_summary,
    line_item,
    payment_summary,
)
from kiosc_core.metrics_overview import compute_overview, upcoming_expenses
from kiosc_core.metrics_programs import compute_program_detail, compute_programs
from kiosc_core.metrics_reports import category_expenses, compute_reports, income_expense_by_period, monthly_summary
from kiosc_core.models import AT_RISK, CAUTION, ON_TRACK, OVERDUE, PAID, PENDING, Transaction
from kiosc_core.settings import UserSettings


# ---------------- Overview ----------------
def test_overview_summary(make_ctx):
    filters, ctx = make_ctx()
    out = compute_overview(filters, ctx)
    assert out["summary"] == {
        "total_income": 130000,
        "total_expenses": 33000,
        "net_balance": 97000,
        "upcoming_expenses": 18000,
    }
    assert [row["name"] for row in out["expenses_by_category"]] == ["GDC", "VCES"]
    assert out["recent_transactions"][0]["reference"] == "INV-2024-007"
    assert [p["name"] for p in out["top_programs"]] == [
        "School Partnership Initiative",
        "Technology Outreach Program",
        "STEM Curriculum Development",
    ]
    assert out["budget_utilization"][0]["program"] == "School Partnership Initiative"


def test_overview_category_filter(make_ctx):
    filters, ctx = make_ctx(category="GDC")
    out = compute_overview(filters, ctx)
    assert out["summary"]["total_income"] == 40000
    assert out["summary"]["total_expenses"] == 18000
    assert [b["program"] for b in out["budget_utilization"]] == ["STEM Curriculum Development"]


def test_overview_budget_status_follows_thresholds(make_ctx):
    filters, ctx = make_ctx(thresholds={"caution": 0.4, "at_risk": 0.6})
    rows = compute_overview(filters, ctx)["budget_utilization"]
    assert [r["status"] for r in rows] == [AT_RISK, AT_RISK, CAUTION, CAUTION, ON_TRACK]
    stem = next(b for b in ctx["budget_tracking"] if b.program == "STEM Curriculum Development")
    assert stem.status == CAUTION


def test_overview_display_labels(make_ctx):
    filters, ctx = make_ctx()
    out = compute_overview(filters, ctx)
    assert out["summary_display"] == {
        "total_income": "A$130,000.00",
        "total_expenses": "A$33,000.00",
        "net_balance": "A$97,000.00",
        "upcoming_expenses": "A$18,000.00",
    }
    latest = out["recent_transactions"][0]
    assert (latest["date_display"], latest["amount_display"]) == ("01/06/2024", "A$40,000.00")


def test_overview_uses_settings_currency_and_date_format(app_data, today):
    filters = normalize_filters({})
    settings = UserSettings(currency="EUR", date_format="yyyy-MM-dd")
    out = compute_overview(filters, prepare_context(filters, app_data, today=today, settings=settings))
    assert out["summary_display"]["net_balance"] == "€97,000.00"
    assert out["recent_transactions"][0]["date_display"] == "2024-06-01"


def test_upcoming_expenses_window(app_data):
    df = transactions_frame(app_data.transactions)
    assert upcoming_expenses(df, date(2024, 2, 1)) == 18000
    assert upcoming_expenses(df, date(2024, 3, 1)) == 0
    assert upcoming_expenses(transactions_frame([]), date(2024, 2, 1)) == 0


def test_categories_first_seen_order(app_data):
    assert categories(app_data.programs) == ["VCES", "GDC", "Commercial", "Operations"]


# ---------------- Programs ----------------
def test_program_ranking(make_ctx):
    filters, ctx = make_ctx()
    out = compute_programs(filters, ctx)
    ranked = out["metrics"]
    assert [r["rank"] for r in ranked] == [1, 2, 3, 4, 5]
    assert ranked[0]["name"] == "School Partnership Initiative"
    tech = next(r for r in ranked if r["name"] == "Technology Outreach Program")
    assert tech["net"] == 35000
    assert tech["budget_utilization"] == pytest.approx(0.1)
    assert out["programs_chart"] is not None


def test_program_search(make_ctx):
    filters, ctx = make_ctx(search="stem")
    out = compute_programs(filters, ctx)
    assert [p["name"] for p in out["programs"]] == ["STEM Curriculum Development"]


def test_program_detail(make_ctx):
    _, ctx = make_ctx()
    out = compute_program_detail("STEM Curriculum Development", ctx)
    assert out["budget"]["total_budget"] == 75000
    assert len(out["transactions"]) == 2
    assert out["metrics"]["income"] == 40000
    assert out["metrics"]["expenses"] == 18000

    with pytest.raises(RecordNotFound):
        compute_program_detail("Nope", ctx)


# ---------------- Invoices / payments ----------------
def test_line_item_totals():
    totals = compute_totals([line_item("a", 2, 50), line_item("b", 1, 100)], tax_rate=10)
    assert totals == {"subtotal": 200, "tax": 20, "total": 220}


def test_derived_invoices(app_data):
    invoices = derive_invoices(app_data.transactions, today=date(2024, 2, 1))
    assert [i.id for i in invoices] == [1000, 1001, 1002]
    assert [i.status for i in invoices] == [PAID, PAID, SENT]
    first = invoices[0]
    assert first.invoice_number == "INV-2024-001"
    assert first.client == "Swinburne University"
    assert first.total == 50000
    assert invoices[2].due_date == date(2024, 6, 28)

    later = derive_invoices(app_data.transactions, today=date(2024, 7, 1))
    assert later[2].status == OVERDUE


def test_invoice_default_terms():
    tx = Transaction(id=1, date=date(2024, 1, 1), program="A", type="Income", amount=500, invoice_date=date(2024, 1, 1))
    [inv] = derive_invoices([tx], today=date(2024, 1, 15))
    assert inv.due_date == date(2024, 1, 31)
    assert inv.status == PENDING
    assert inv.invoice_number == "INV-1000"
    assert inv.client == "Client"


def test_invoice_widget_summary(app_data):
    summary = invoice_widget_summary(app_data.transactions)
    assert (summary["total"], summary["paid"], summary["pending"], summary["overdue"]) == (3, 2, 1, 0)
    assert summary["recent"][0]["reference"] == "INV-2024-007"


def test_payment_summary_counts_pending_as_outstanding(app_data):
    summary = payment_summary(app_data.transactions)
    assert summary["total"] == 163000
    assert summary["paid"] == 105000
    assert summary["outstanding"] == 58000
    assert summary["paid_count"] == 3
    assert summary["pending_count"] == 1
    assert summary["outstanding_count"] == 1


def test_filter_payments(app_data):
    outstanding = filter_payments(app_data.transactions, normalize_filters({"tab": "outstanding"}))
    assert [t.reference for t in outstanding] == ["PO-2024-002", "INV-2024-007"]
    found = filter_payments(app_data.transactions, normalize_filters({"search": "swinburne"}))
    assert len(found) == 1


def test_compute_payments_chart_rows(make_ctx):
    filters, ctx = make_ctx()
    out = compute_payments(filters, ctx)
    assert [r["name"] for r in out["status_chart_rows"]] == ["Paid", "Outstanding"]
    assert out["has_overdue"] is False


def test_compute_invoices_status_filter(make_ctx):
    filters, ctx = make_ctx(payment_status="Paid")
    out = compute_invoices(filters, ctx)
    assert len(out["invoices"]) == 2
    assert out["total_value"] == 90000
    assert out["outstanding_value"] == 0


# ---------------- Reports ----------------
def test_income_expense_by_quarter(app_data):
    df = transactions_frame(app_data.transactions)
    periods = income_expense_by_period(df, "quarterly")
    assert periods["period"].tolist() == ["Q1 2024", "Q2 2024"]
    assert periods["income"].tolist() == [90000, 40000]
    assert periods["net"].tolist() == [57000, 40000]


def test_income_expense_by_month_is_chronological(app_data):
    df = transactions_frame(app_data.transactions)
    assert income_expense_by_period(df)["period"].tolist() == ["Jan 2024", "Feb 2024", "Jun 2024"]
    assert income_expense_by_period(transactions_frame([])).empty


def test_monthly_summary_running_totals(app_data):
    rows = monthly_summary(transactions_frame(app_data.transactions), 2024)
    assert len(rows) == 12
    assert rows[0]["income"] == 50000
    assert rows[2]["ytd_income"] == 90000
    assert rows[2]["income"] == 0
    assert rows[11]["ytd_net"] == 97000


def test_category_expenses_shares(app_data):
    df = transactions_frame(app_data.transactions)
    rows = category_expenses(df)
    assert rows[0]["category"] == "GDC"
    assert rows[0]["share"] == pytest.approx(18000 / 33000)

    fixed = category_expenses(df, ["VCES", "Operations"])
    assert fixed == [
        {"category": "VCES", "amount": 15000, "share": 1.0},
        {"category": "Operations", "amount": 0.0, "share": 0.0},
    ]


def test_compute_reports_for_empty_year(make_ctx):
    filters, ctx = make_ctx(year=2023)
    out = compute_reports(filters, ctx)
    assert out["periods"] == []
    assert out["income_expense_chart"] is None
    assert all(row["income"] == 0 for row in out["monthly_summary"])
