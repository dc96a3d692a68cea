from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from kiosc_core.budget import classify_status
from kiosc_core.charts import currency_axis, status_color, to_vega_spec
from kiosc_core.data import income_expense_totals, transactions_frame
from kiosc_core.errors import RecordNotFound
from kiosc_core.filters import DashboardFilters, Thresholds
from kiosc_core.models import BudgetTracking, Program, Transaction, to_record

METRIC_COLUMNS = ["id", "name", "category", "income", "expenses", "net", "budget", "budget_utilization", "status"]


def program_metrics(
    programs: List[Program],
    transactions: List[Transaction],
    thresholds: Optional[Thresholds] = None,
) -> pd.DataFrame:
    """Income, expenses and net per program; utilization is expenses over the program budget."""
    if not programs:
        return pd.DataFrame(columns=METRIC_COLUMNS)
    tx_df = transactions_frame(transactions)
    rows = []
    for p in programs:
        own = tx_df[tx_df["program"] == p.name] if not tx_df.empty else tx_df
        totals = income_expense_totals(own)
        budget = p.budget or 0.0
        utilization = totals["expenses"] / budget if budget else 0.0
        rows.append(
            {
                "id": p.id,
                "name": p.name,
                "category": p.category,
                "income": totals["income"],
                "expenses": totals["expenses"],
                "net": totals["net"],
                "budget": budget,
                "budget_utilization": utilization,
                "status": classify_status(utilization, thresholds),
            }
        )
    return pd.DataFrame(rows, columns=METRIC_COLUMNS)


def compute_programs(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    programs: List[Program] = ctx.get("programs", [])
    if filters.search:
        q = filters.search.lower()
        programs = [p for p in programs if q in p.name.lower() or q in p.category.lower()]

    metrics = program_metrics(programs, ctx.get("transactions", []), filters.thresholds)
    ranked = metrics.sort_values("net", ascending=False, kind="stable").reset_index(drop=True)
    if not ranked.empty:
        ranked.insert(0, "rank", ranked.index + 1)

    chart = None
    if not ranked.empty:
        bar = (
            alt.Chart(ranked)
            .mark_bar()
            .encode(
                x=alt.X("expenses:Q", axis=currency_axis("Expenses")),
                y=alt.Y("name:N", sort="-x", title="Program"),
                color=status_color(),
                tooltip=[
                    "name",
                    alt.Tooltip("income:Q", format="$,.0f"),
                    alt.Tooltip("expenses:Q", format="$,.0f"),
                    alt.Tooltip("budget_utilization:Q", format=".0%"),
                ],
            )
        )
        chart = to_vega_spec(bar)

    return {
        "filters": asdict(filters),
        "programs": [to_record(p) for p in programs],
        "metrics": ranked.to_dict(orient="records"),
        "top_programs": ranked.head(filters.top_n).to_dict(orient="records"),
        "programs_chart": chart,
    }


def find_program(programs: List[Program], name: str) -> Program:
    for p in programs:
        if p.name == name:
            return p
    raise RecordNotFound(f"Program '{name}' not found")


def compute_program_detail(name: str, ctx: Dict[str, Any]) -> Dict[str, Any]:
    filters: DashboardFilters = ctx["filters"]
    program = find_program(ctx.get("all_programs", []), name)
    budgets: List[BudgetTracking] = ctx.get("budget_tracking", [])
    budget = next((b for b in budgets if b.program == name), None)

    own = sorted(
        (t for t in ctx.get("transactions", []) if t.program == name),
        key=lambda t: t.date,
        reverse=True,
    )
    metrics = program_metrics([program], own, filters.thresholds)
    return {
        "program": to_record(program),
        "budget": to_record(budget) if budget else None,
        "metrics": metrics.iloc[0].to_dict(),
        "transactions": [to_record(t) for t in own],
    }
