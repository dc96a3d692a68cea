from __future__ import annotations

import calendar
from dataclasses import asdict
from datetime import date
from typing import Any, Dict, List, Optional

from kiosc_core.data import income_expense_totals, transactions_frame
from kiosc_core.errors import KioscError
from kiosc_core.filters import ALL, DashboardFilters
from kiosc_core.formatters import display_amounts, format_currency, with_display
from kiosc_core.models import EXPENSE, INCOME, Transaction, to_record


def filter_transactions(transactions: List[Transaction], filters: DashboardFilters) -> List[Transaction]:
    """Transactions page filters: free-text search plus program/type/category/status and a date range.

    Search is case-insensitive over program, reference and description. Both
    ends of the date range are inclusive.
    """
    needle = filters.search.lower()
    out = []
    for t in transactions:
        if needle and not any(needle in (v or "").lower() for v in (t.program, t.reference, t.description)):
            continue
        if filters.program != ALL and t.program != filters.program:
            continue
        if filters.type != ALL and t.type != filters.type:
            continue
        if filters.account_category != ALL and t.account_category != filters.account_category:
            continue
        if filters.status != ALL and t.status != filters.status:
            continue
        if filters.start_date and (t.date is None or t.date < filters.start_date):
            continue
        if filters.end_date and (t.date is None or t.date > filters.end_date):
            continue
        out.append(t)
    return out


def compute_transactions(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    currency = ctx.get("currency", "AUD")
    date_pattern = ctx.get("date_format", "dd/MM/yyyy")

    selected = filter_transactions(ctx.get("transactions", []), filters)
    selected.sort(key=lambda t: t.date or date.min, reverse=True)
    totals = income_expense_totals(transactions_frame(selected))

    return {
        "filters": asdict(filters),
        "transactions": [with_display(to_record(t), currency, date_pattern) for t in selected],
        "count": len(selected),
        "totals": totals,
        "totals_display": display_amounts(totals, currency),
        "types": sorted({t.type for t in ctx.get("transactions", []) if t.type}),
        "account_categories": sorted({t.account_category for t in ctx.get("transactions", []) if t.account_category}),
    }


def transactions_by_day(transactions: List[Transaction], year: int, month: int) -> Dict[int, List[Transaction]]:
    """Transactions dated in ``year``/``month`` keyed by day of month."""
    out: Dict[int, List[Transaction]] = {}
    for t in transactions:
        if t.date and t.date.year == year and t.date.month == month:
            out.setdefault(t.date.day, []).append(t)
    return out


def compute_calendar(
    filters: DashboardFilters,
    ctx: Dict[str, Any],
    *,
    year: Optional[int] = None,
    month: Optional[int] = None,
) -> Dict[str, Any]:
    """One row per day of the month; defaults to the month containing ``today``."""
    today: date = ctx.get("today") or date.today()
    year = year or today.year
    month = month or today.month
    if not 1 <= month <= 12:
        raise KioscError(f"Month must be between 1 and 12, got {month}")
    currency = ctx.get("currency", "AUD")

    grouped = transactions_by_day(filter_transactions(ctx.get("transactions", []), filters), year, month)
    days = []
    for day in range(1, calendar.monthrange(year, month)[1] + 1):
        own = grouped.get(day, [])
        income = sum(t.amount for t in own if t.type == INCOME)
        expenses = sum(abs(t.amount) for t in own if t.type == EXPENSE)
        days.append(
            {
                "date": date(year, month, day).isoformat(),
                "day": day,
                "count": len(own),
                "income": float(income),
                "expenses": float(expenses),
                "income_display": format_currency(income, currency) if own else "",
                "expenses_display": format_currency(expenses, currency) if own else "",
                "transactions": [to_record(t) for t in own],
            }
        )

    return {
        "filters": asdict(filters),
        "year": year,
        "month": month,
        "month_name": calendar.month_name[month],
        "days": days,
    }
