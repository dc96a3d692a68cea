from __future__ import annotations

from dataclasses import asdict
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from kiosc_core.config import INVOICE_TERMS_DAYS
from kiosc_core.filters import ALL, DashboardFilters
from kiosc_core.models import (
    INCOME,
    OUTSTANDING,
    OVERDUE,
    PAID,
    PENDING,
    Invoice,
    InvoiceLineItem,
    Transaction,
    to_record,
)

INVOICE_ID_BASE = 1000
SENT = "Sent"


def line_item(description: str = "", quantity: float = 1.0, unit_price: float = 0.0) -> InvoiceLineItem:
    return InvoiceLineItem(
        description=description,
        quantity=quantity,
        unit_price=unit_price,
        amount=quantity * unit_price,
    )


def compute_totals(items: Iterable[InvoiceLineItem], tax_rate: float = 0.0) -> Dict[str, float]:
    """``tax_rate`` is a percentage: 10 means 10% of the subtotal."""
    subtotal = sum(i.quantity * i.unit_price for i in items)
    tax = subtotal * (tax_rate or 0.0) / 100
    return {"subtotal": subtotal, "tax": tax, "total": subtotal + tax}


def apply_totals(invoice: Invoice) -> Invoice:
    for item in invoice.items:
        item.amount = item.quantity * item.unit_price
    totals = compute_totals(invoice.items, invoice.tax_rate)
    invoice.subtotal = totals["subtotal"]
    invoice.tax = totals["tax"]
    invoice.total = totals["total"]
    return invoice


def due_date_for(invoice_date: date, payment_due_date: Optional[date] = None, terms_days: int = INVOICE_TERMS_DAYS) -> date:
    return payment_due_date or invoice_date + timedelta(days=terms_days)


def invoice_status(payment_status: str, due: date, today: date) -> str:
    if payment_status == PAID:
        return PAID
    if today > due:
        return OVERDUE
    if payment_status == OUTSTANDING:
        return SENT
    return PENDING


def invoice_transactions(transactions: Iterable[Transaction]) -> List[Transaction]:
    return [t for t in transactions if t.type == INCOME and t.invoice_date]


def derive_invoices(transactions: Iterable[Transaction], *, today: Optional[date] = None) -> List[Invoice]:
    """One invoice per invoiced income transaction, numbered from 1000."""
    today = today or date.today()
    out = []
    for index, t in enumerate(invoice_transactions(transactions)):
        invoice_id = INVOICE_ID_BASE + index
        due = due_date_for(t.invoice_date, t.payment_due_date)
        amount = abs(t.amount or 0)
        invoice = Invoice(
            id=invoice_id,
            invoice_number=t.reference or f"INV-{invoice_id}",
            program=t.program,
            date=t.invoice_date,
            due_date=due,
            client=t.supplier or "Client",
            items=[line_item(t.description or "Services", 1, amount)],
            notes=t.description,
            status=invoice_status(t.payment_status, due, today),
            payment_date=t.payment_date,
            created_at=t.date,
        )
        out.append(apply_totals(invoice))
    return out


def invoice_widget_summary(transactions: Iterable[Transaction], *, today: Optional[date] = None, recent: int = 5) -> Dict[str, Any]:
    invoices = invoice_transactions(transactions)
    summary: Dict[str, Any] = {"total": len(invoices), "paid": 0, "pending": 0, "overdue": 0}
    for t in invoices:
        if t.payment_status == PAID:
            summary["paid"] += 1
        elif t.payment_status == OVERDUE:
            summary["overdue"] += 1
        else:
            summary["pending"] += 1
    ordered = sorted(invoices, key=lambda t: t.invoice_date, reverse=True)
    summary["recent"] = [to_record(t) for t in ordered[:recent]]
    return summary


# ---------------- Payment tracking ----------------
def payment_summary(transactions: Iterable[Transaction]) -> Dict[str, float]:
    """Totals over every transaction carrying an invoice date, income or expense."""
    summary = {
        "total": 0.0,
        "paid": 0.0,
        "outstanding": 0.0,
        "overdue": 0.0,
        "paid_count": 0,
        "outstanding_count": 0,
        "overdue_count": 0,
        "pending_count": 0,
    }
    for t in transactions:
        if not t.invoice_date:
            continue
        amount = abs(t.amount or 0)
        summary["total"] += amount
        if t.payment_status == PAID:
            summary["paid"] += amount
            summary["paid_count"] += 1
        elif t.payment_status == OVERDUE:
            summary["overdue"] += amount
            summary["overdue_count"] += 1
        elif t.payment_status == OUTSTANDING:
            summary["outstanding"] += amount
            summary["outstanding_count"] += 1
        elif t.payment_status == PENDING:
            summary["outstanding"] += amount
            summary["pending_count"] += 1
    return summary


TAB_STATUSES = {
    "outstanding": {OUTSTANDING, PENDING},
    "paid": {PAID},
    "overdue": {OVERDUE},
}


def filter_payments(transactions: Iterable[Transaction], filters: DashboardFilters) -> List[Transaction]:
    q = filters.search.lower()
    out = []
    for t in transactions:
        if not t.invoice_date:
            continue
        if q and not (q in t.program.lower() or q in t.reference.lower() or q in t.supplier.lower()):
            continue
        if filters.program != ALL and t.program != filters.program:
            continue
        if filters.payment_status != ALL and t.payment_status != filters.payment_status:
            continue
        allowed = TAB_STATUSES.get(filters.tab)
        if allowed is not None and t.payment_status not in allowed:
            continue
        out.append(t)
    return out


def compute_payments(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    transactions: List[Transaction] = ctx.get("transactions", [])
    summary = payment_summary(transactions)
    chart_rows = [
        {"name": name, "value": summary[key]}
        for name, key in [("Paid", "paid"), ("Outstanding", "outstanding"), ("Overdue", "overdue")]
        if summary[key] > 0
    ]
    rows = filter_payments(transactions, filters)
    return {
        "filters": asdict(filters),
        "summary": summary,
        "status_chart_rows": chart_rows,
        "has_overdue": summary["overdue_count"] > 0,
        "payments": [to_record(t) for t in rows],
    }


def filter_invoices(invoices: Iterable[Invoice], filters: DashboardFilters) -> List[Invoice]:
    q = filters.search.lower()
    out = []
    for inv in invoices:
        if q and not (q in inv.invoice_number.lower() or q in inv.client.lower() or q in inv.program.lower()):
            continue
        if filters.program != ALL and inv.program != filters.program:
            continue
        if filters.payment_status != ALL and inv.status != filters.payment_status:
            continue
        out.append(inv)
    return out


def compute_invoices(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    invoices: List[Invoice] = ctx.get("invoices", [])
    selected = filter_invoices(invoices, filters)
    by_status: Dict[str, int] = {}
    for inv in selected:
        by_status[inv.status] = by_status.get(inv.status, 0) + 1
    return {
        "filters": asdict(filters),
        "invoices": [to_record(inv) for inv in selected],
        "status_counts": by_status,
        "total_value": float(sum(inv.total for inv in selected)),
        "outstanding_value": float(sum(inv.total for inv in selected if inv.status != PAID)),
    }
