from __future__ import annotations

from dataclasses import asdict, replace
from datetime import date, timedelta
from typing import Any, Dict, List

import pandas as pd

from kiosc_core.budget import classify_status, filter_budgets, top_utilization
from kiosc_core.config import UPCOMING_WINDOW_DAYS
from kiosc_core.data import income_expense_totals
from kiosc_core.filters import DashboardFilters
from kiosc_core.formatters import display_amounts, with_display
from kiosc_core.metrics_invoices import invoice_widget_summary
from kiosc_core.metrics_programs import program_metrics
from kiosc_core.models import EXPENSE, to_record


def upcoming_expenses(tx_df: pd.DataFrame, today: date, days: int = UPCOMING_WINDOW_DAYS) -> float:
    """Expenses dated from today through ``today + days`` inclusive."""
    if tx_df.empty:
        return 0.0
    start = pd.Timestamp(today)
    end = pd.Timestamp(today + timedelta(days=days))
    mask = (tx_df["type"] == EXPENSE) & (tx_df["date"] >= start) & (tx_df["date"] <= end)
    return float(tx_df.loc[mask, "value"].sum())


def expenses_by_category(tx_df: pd.DataFrame) -> List[Dict[str, Any]]:
    if tx_df.empty:
        return []
    expenses = tx_df[tx_df["type"] == EXPENSE].copy()
    if expenses.empty:
        return []
    expenses["account_category"] = expenses["account_category"].replace("", "Uncategorized")
    grouped = (
        expenses.groupby("account_category")["value"]
        .sum()
        .reset_index()
        .rename(columns={"account_category": "name"})
        .sort_values("value", ascending=False, kind="stable")
    )
    return grouped.to_dict(orient="records")


def recent_transactions(
    transactions: list, n: int = 5, currency: str = "AUD", date_pattern: str = "dd/MM/yyyy"
) -> List[Dict[str, Any]]:
    ordered = sorted(transactions, key=lambda t: t.date, reverse=True)
    return [with_display(to_record(t), currency, date_pattern) for t in ordered[:n]]


def compute_overview(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    tx_df: pd.DataFrame = ctx.get("transactions_df", pd.DataFrame())
    today: date = ctx.get("today") or date.today()

    totals = income_expense_totals(tx_df)
    summary = {
        "total_income": totals["income"],
        "total_expenses": totals["expenses"],
        "net_balance": totals["net"],
        "upcoming_expenses": upcoming_expenses(tx_df, today),
    }

    currency = ctx.get("currency", "AUD")
    budgets = [
        replace(b, status=classify_status(b.percent_used, filters.thresholds))
        for b in filter_budgets(
            ctx.get("budget_tracking", []),
            ctx.get("all_programs", []),
            program=filters.program,
            category=filters.category,
        )
    ]
    metrics = program_metrics(ctx.get("programs", []), ctx.get("transactions", []), filters.thresholds)
    top_programs = (
        metrics.sort_values("net", ascending=False, kind="stable").head(3).to_dict(orient="records")
        if not metrics.empty
        else []
    )

    return {
        "filters": asdict(filters),
        "summary": summary,
        "summary_display": display_amounts(summary, currency),
        "expenses_by_category": expenses_by_category(tx_df),
        "recent_transactions": recent_transactions(
            ctx.get("transactions", []), filters.top_n, currency, ctx.get("date_format", "dd/MM/yyyy")
        ),
        "budget_utilization": [to_record(b) for b in top_utilization(budgets, 5)],
        "top_programs": top_programs,
        "invoices": invoice_widget_summary(ctx.get("transactions", []), today=today),
    }
