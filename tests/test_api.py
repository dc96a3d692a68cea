import pytest
from fastapi.testclient import TestClient

from kiosc_api import __main__ as entry
from kiosc_api import main
from kiosc_core.config import API_HOST, API_PORT
from kiosc_core.models import PROGRAMS
from kiosc_core.store import FinanceStore
from kiosc_core.workbook import read_workbook, write_workbook

XLSX = main.XLSX_MEDIA_TYPE


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(main, "store", FinanceStore())
    return TestClient(main.app)


def test_meta(client):
    assert client.get("/meta/categories").json() == {"categories": ["VCES", "GDC", "Commercial", "Operations"]}
    assert len(client.get("/meta/programs").json()["programs"]) == 5
    assert client.get("/meta/years").json() == {"years": [2024]}


def test_overview(client):
    res = client.post("/overview", json={})
    assert res.status_code == 200
    body = res.json()
    assert body["summary"]["total_income"] == 130000
    assert body["filters"]["program"] == "All"


def test_overview_rejects_unknown_tab(client):
    assert client.post("/overview", json={"tab": "bogus"}).status_code == 422


def test_budget_and_programs(client):
    budget = client.post("/budget", json={"category": "VCES"}).json()
    assert budget["summary"]["total_budget"] == 240000
    assert budget["budget_chart"] is not None

    programs = client.post("/programs", json={"top_n": 2}).json()
    assert len(programs["top_programs"]) == 2


def test_program_detail(client):
    res = client.get("/programs/STEM Curriculum Development")
    assert res.status_code == 200
    assert res.json()["program"]["category"] == "GDC"

    missing = client.get("/programs/Nope")
    assert missing.status_code == 404
    assert missing.json()["type"] == "RecordNotFound"


def test_reports(client):
    yearly = client.post("/reports/income-expense", params={"time_frame": "yearly"}, json={}).json()
    assert [p["period"] for p in yearly["periods"]] == ["2024"]

    months = client.post("/reports/monthly-summary", json={"year": 2024}).json()["months"]
    assert months[11]["ytd_net"] == 97000

    cats = client.post("/reports/category-expenses", json={}).json()["categories"]
    assert cats[0]["category"] == "GDC"

    full = client.post("/reports", json={"time_frame": "quarterly"}).json()
    assert full["income_expense_chart"] is not None


def test_payments(client):
    body = client.post("/payments", json={"tab": "paid"}).json()
    assert body["summary"]["paid_count"] == 3
    assert len(body["payments"]) == 3


def test_import_workbook(client):
    payload = write_workbook({"Programs": [{"Name": "Only", "Budget": 10}]})
    res = client.post("/import", files={"file": ("finance.xlsx", payload, XLSX)})
    assert res.status_code == 200
    assert res.json()["counts"]["programs"] == 1
    assert client.get("/meta/programs").json() == {"programs": ["Only"]}


def test_import_rejects_bad_files(client):
    res = client.post("/import", files={"file": ("finance.csv", b"a,b", "text/csv")})
    assert res.status_code == 400

    res = client.post("/import", files={"file": ("finance.xlsx", b"junk", XLSX)})
    assert res.status_code == 400
    assert res.json()["type"] == "WorkbookError"


def test_import_templates(client):
    programs = write_workbook({"Sheet1": [{"Name": "A", "Budget": 100}]})
    suppliers = write_workbook({"Sheet1": [{"Supplier Name": "Acme"}]})
    res = client.post(
        "/import/templates",
        files=[
            ("files", ("Revenue_Terms.xlsx", programs, XLSX)),
            ("files", ("Suppliers.xlsx", suppliers, XLSX)),
        ],
    )
    assert res.status_code == 200
    counts = res.json()["counts"]
    assert counts["programs"] == 1
    assert counts["suppliers"] == 1
    assert counts["budget_tracking"] == 1


def test_export(client):
    res = client.get("/export")
    assert res.status_code == 200
    assert res.headers["content-type"] == XLSX
    assert "KIOSC_Finance_Data.xlsx" in res.headers["content-disposition"]
    assert len(read_workbook(res.content)[PROGRAMS]) == 5


def test_templates(client):
    listing = client.get("/templates").json()["templates"]
    assert {t["id"] for t in listing} == {"programs", "budget", "transactions", "suppliers"}

    res = client.get("/templates/transactions")
    assert res.status_code == 200
    assert "KIOSC_Transactions_Template.xlsx" in res.headers["content-disposition"]

    assert client.get("/templates/unknown").status_code == 404


def test_add_transaction_and_budget(client):
    res = client.post("/transactions", json={"date": "2024-07-01", "program": "X", "amount": -5})
    assert res.status_code == 201
    assert res.json()["id"] == 6
    assert res.json()["date"] == "2024-07-01"

    budget = client.post("/budgets", json={"program": "X", "total_budget": 100, "ytd_expenses": 95}).json()
    assert budget["status"] == "At Risk"
    assert budget["available_budget"] == 5


def test_invoice_crud(client):
    res = client.post(
        "/invoices",
        json={
            "program": "X",
            "date": "2024-07-01",
            "due_date": "2024-07-31",
            "items": [{"description": "Workshop", "quantity": 2, "unit_price": 250}],
            "tax_rate": 10,
        },
    )
    assert res.status_code == 201
    invoice = res.json()
    assert invoice["total"] == 550
    assert invoice["items"][0]["amount"] == 500

    patched = client.patch(f"/invoices/{invoice['id']}", json={"status": "Paid", "payment_date": "2024-07-05"})
    assert patched.json()["payment_date"] == "2024-07-05"

    paid = client.get("/invoices", params={"status": "Paid"}).json()
    assert invoice["id"] in [i["id"] for i in paid["invoices"]]

    assert client.delete(f"/invoices/{invoice['id']}").status_code == 200
    assert client.delete(f"/invoices/{invoice['id']}").status_code == 404


def test_settings(client):
    assert client.get("/settings").json()["date_format"] == "dd/MM/yyyy"
    assert client.put("/settings", json={"theme": "dark"}).json()["theme"] == "dark"
    assert client.put("/settings", json={"theme": "neon"}).status_code == 422
    assert client.post("/settings/reset").json()["theme"] == "light"


def test_transaction_search(client):
    body = client.post("/transactions/search", json={"type": "Expense", "start_date": "2024-02-01"}).json()
    assert body["count"] == 1
    assert body["transactions"][0]["reference"] == "PO-2024-002"
    assert body["filters"]["start_date"] == "2024-02-01"

    assert client.post("/transactions/search", json={"start_date": "not-a-date"}).status_code == 422


def test_calendar(client):
    body = client.post("/calendar", params={"year": 2024, "month": 1}, json={}).json()
    assert body["month_name"] == "January"
    assert len(body["days"]) == 31
    assert body["days"][14]["count"] == 1
    assert body["days"][19]["expenses"] == 15000

    assert client.post("/calendar", params={"month": 13}, json={}).status_code == 422


def test_display_labels_follow_settings(client):
    assert client.post("/overview", json={}).json()["summary_display"]["total_income"] == "A$130,000.00"
    client.put("/settings", json={"currency": "USD", "date_format": "MM/dd/yyyy"})
    body = client.post("/overview", json={}).json()
    assert body["summary_display"]["total_income"] == "$130,000.00"
    assert body["recent_transactions"][0]["date_display"] == "06/01/2024"


def test_entry_point_runs_uvicorn(monkeypatch):
    calls = []
    monkeypatch.setattr(entry.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    entry.main()
    [(target, kwargs)] = calls
    assert target == "kiosc_api.main:app"
    assert (kwargs["host"], kwargs["port"]) == (API_HOST, API_PORT)
