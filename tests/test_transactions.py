from datetime import date

import pytest

from kiosc_core.errors import KioscError
from kiosc_core.filters import normalize_filters
from kiosc_core.metrics_transactions import (
    compute_calendar,
    compute_transactions,
    filter_transactions,
    transactions_by_day,
)


def _refs(transactions):
    return [t.reference for t in transactions]


def test_compute_transactions_newest_first(make_ctx):
    filters, ctx = make_ctx()
    out = compute_transactions(filters, ctx)
    assert out["count"] == 5
    assert out["transactions"][0]["reference"] == "INV-2024-007"
    assert out["transactions"][-1]["reference"] == "INV-2024-001"
    assert out["totals"] == {"income": 130000, "expenses": 33000, "net": 97000}
    assert out["types"] == ["Expense", "Income"]
    assert out["account_categories"] == ["Commercial", "GDC", "VCES"]


def test_search_matches_program_reference_and_description(app_data):
    assert _refs(filter_transactions(app_data.transactions, normalize_filters({"search": "INSTALLMENT"}))) == [
        "INV-2024-002",
        "INV-2024-007",
    ]
    assert _refs(filter_transactions(app_data.transactions, normalize_filters({"search": "po-2024"}))) == [
        "PO-2024-001",
        "PO-2024-002",
    ]
    assert len(filter_transactions(app_data.transactions, normalize_filters({"search": "stem curriculum"}))) == 2


def test_type_category_and_status_filters(app_data):
    expenses = filter_transactions(app_data.transactions, normalize_filters({"type": "Expense"}))
    assert _refs(expenses) == ["PO-2024-001", "PO-2024-002"]

    gdc = filter_transactions(app_data.transactions, normalize_filters({"account_category": "GDC"}))
    assert _refs(gdc) == ["INV-2024-002", "PO-2024-002"]

    assert filter_transactions(app_data.transactions, normalize_filters({"status": "Pending"})) == []
    assert len(filter_transactions(app_data.transactions, normalize_filters({"status": "Completed"}))) == 5


def test_date_range_is_inclusive(app_data):
    filters = normalize_filters({"start_date": "2024-01-20", "end_date": "2024-02-05"})
    assert _refs(filter_transactions(app_data.transactions, filters)) == ["PO-2024-001", "INV-2024-002"]

    only_start = normalize_filters({"start_date": date(2024, 2, 18)})
    assert _refs(filter_transactions(app_data.transactions, only_start)) == ["PO-2024-002", "INV-2024-007"]


def test_date_filters_normalized():
    swapped = normalize_filters({"start_date": "2024-03-01", "end_date": "2024-01-01"})
    assert (swapped.start_date, swapped.end_date) == (date(2024, 1, 1), date(2024, 3, 1))
    assert normalize_filters({"start_date": "soon"}).start_date is None
    assert normalize_filters({}).type == "All"


def test_compute_transactions_respects_context_and_totals(make_ctx):
    filters, ctx = make_ctx(category="GDC", type="Expense")
    out = compute_transactions(filters, ctx)
    assert [t["reference"] for t in out["transactions"]] == ["PO-2024-002"]
    assert out["totals"] == {"income": 0, "expenses": 18000, "net": -18000}
    assert out["totals_display"]["net"] == "-A$18,000.00"


def test_transactions_by_day(app_data):
    january = transactions_by_day(app_data.transactions, 2024, 1)
    assert sorted(january) == [15, 20]
    assert _refs(january[15]) == ["INV-2024-001"]
    assert transactions_by_day(app_data.transactions, 2023, 1) == {}


def test_calendar_defaults_to_current_month(make_ctx):
    filters, ctx = make_ctx()
    out = compute_calendar(filters, ctx)
    assert (out["year"], out["month"], out["month_name"]) == (2024, 2, "February")
    assert len(out["days"]) == 29
    day5 = out["days"][4]
    assert day5["date"] == "2024-02-05"
    assert (day5["count"], day5["income"], day5["expenses"]) == (1, 40000, 0)
    assert day5["income_display"] == "A$40,000.00"
    assert out["days"][17]["expenses"] == 18000
    assert out["days"][0]["count"] == 0
    assert out["days"][0]["income_display"] == ""


def test_calendar_applies_filters(make_ctx):
    filters, ctx = make_ctx(type="Expense")
    days = compute_calendar(filters, ctx, year=2024, month=1)["days"]
    assert len(days) == 31
    assert [d["day"] for d in days if d["count"]] == [20]


def test_calendar_rejects_bad_month(make_ctx):
    filters, ctx = make_ctx()
    with pytest.raises(KioscError):
        compute_calendar(filters, ctx, year=2024, month=13)
