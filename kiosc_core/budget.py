from __future__ import annotations

from dataclasses import asdict, replace
from typing import Any, Dict, List, Optional, Tuple

import altair as alt
import pandas as pd

from kiosc_core.charts import currency_axis, to_vega_spec
from kiosc_core.filters import ALL, DashboardFilters, Thresholds
from kiosc_core.formatters import display_amounts
from kiosc_core.models import (
    AT_RISK,
    CAUTION,
    COMPLETED,
    EXPENSE,
    INCOME,
    ON_TRACK,
    BudgetTracking,
    Program,
    Transaction,
    to_record,
)


def percent_used(total_budget: float, ytd_expenses: float, committed_expenses: float) -> float:
    """Fraction of the budget consumed by expenses plus commitments (0 with no budget)."""
    if not total_budget or total_budget <= 0:
        return 0.0
    return (ytd_expenses + committed_expenses) / total_budget


def classify_status(used: float, thresholds: Optional[Thresholds] = None) -> str:
    t = thresholds or Thresholds()
    if used > t.at_risk:
        return AT_RISK
    if used > t.caution:
        return CAUTION
    return ON_TRACK


def derive_budget(
    total_budget: float,
    ytd_expenses: float,
    committed_expenses: float,
    thresholds: Optional[Thresholds] = None,
) -> Tuple[float, float, str]:
    """Return ``(available_budget, percent_used, status)``."""
    available = total_budget - ytd_expenses - committed_expenses
    used = percent_used(total_budget, ytd_expenses, committed_expenses)
    return available, used, classify_status(used, thresholds)


def refresh_budget(budget: BudgetTracking, thresholds: Optional[Thresholds] = None) -> BudgetTracking:
    budget.available_budget, budget.percent_used, budget.status = derive_budget(
        budget.total_budget, budget.ytd_expenses, budget.committed_expenses, thresholds
    )
    return budget


def rollup_budgets(
    programs: List[Program],
    transactions: List[Transaction],
    thresholds: Optional[Thresholds] = None,
) -> List[BudgetTracking]:
    """Build one budget row per program from its transactions.

    Completed expenses count as YTD expenses; any other expense status is a
    commitment.
    """
    out = []
    for p in programs:
        own = [t for t in transactions if t.program == p.name]
        spent = sum(abs(t.amount) for t in own if t.type == EXPENSE and t.status == COMPLETED)
        committed = sum(abs(t.amount) for t in own if t.type == EXPENSE and t.status != COMPLETED)
        income = sum(t.amount for t in own if t.type == INCOME)
        out.append(
            refresh_budget(
                BudgetTracking(
                    program=p.name,
                    total_budget=p.budget,
                    ytd_expenses=spent,
                    committed_expenses=committed,
                    ytd_income=income,
                ),
                thresholds,
            )
        )
    return out


def filter_budgets(
    budgets: List[BudgetTracking],
    programs: List[Program],
    *,
    program: str = ALL,
    category: str = ALL,
) -> List[BudgetTracking]:
    """Program filter matches by name; category goes through the Program with the same name."""
    category_by_program = {p.name: p.category for p in programs}
    out = []
    for b in budgets:
        if program != ALL and b.program != program:
            continue
        if category != ALL and category_by_program.get(b.program) != category:
            continue
        out.append(b)
    return out


def summarize_budgets(budgets: List[BudgetTracking]) -> Dict[str, float]:
    total_budget = sum(b.total_budget or 0 for b in budgets)
    total_expenses = sum(b.ytd_expenses or 0 for b in budgets)
    total_committed = sum(b.committed_expenses or 0 for b in budgets)
    return {
        "total_budget": float(total_budget),
        "total_expenses": float(total_expenses),
        "total_committed": float(total_committed),
        "total_available": float(total_budget - total_expenses - total_committed),
        "utilization": percent_used(total_budget, total_expenses, total_committed),
        "total_income": float(sum(b.ytd_income or 0 for b in budgets)),
    }


def top_utilization(budgets: List[BudgetTracking], n: int = 5) -> List[BudgetTracking]:
    return sorted(budgets, key=lambda b: b.percent_used or 0, reverse=True)[:n]


def status_counts(budgets: List[BudgetTracking]) -> Dict[str, int]:
    counts = {ON_TRACK: 0, CAUTION: 0, AT_RISK: 0}
    for b in budgets:
        counts[b.status] = counts.get(b.status, 0) + 1
    return counts


def short_label(name: str, width: int = 15) -> str:
    return name if len(name) <= width else name[:width] + "..."


def budget_chart_rows(budgets: List[BudgetTracking]) -> List[Dict[str, Any]]:
    return [
        {
            "name": short_label(b.program),
            "program": b.program,
            "budget": b.total_budget or 0,
            "expenses": b.ytd_expenses or 0,
            "committed": b.committed_expenses or 0,
            "available": b.available_budget or 0,
        }
        for b in budgets
    ]


def compute_budget(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    budgets: List[BudgetTracking] = ctx.get("budget_tracking", [])
    programs: List[Program] = ctx.get("programs", [])

    # Thresholds may differ from the ones used at import time.
    selected = [
        replace(b, status=classify_status(b.percent_used, filters.thresholds))
        for b in filter_budgets(budgets, programs, program=filters.program, category=filters.category)
    ]

    summary = summarize_budgets(selected)
    chart_rows = budget_chart_rows(selected)
    chart = None
    if chart_rows:
        long = pd.DataFrame(chart_rows).melt(
            id_vars=["name", "program"],
            value_vars=["expenses", "committed", "available"],
            var_name="component",
            value_name="amount",
        )
        bar = (
            alt.Chart(long)
            .mark_bar()
            .encode(
                x=alt.X("name:N", title="Program", sort=None),
                y=alt.Y("amount:Q", stack="zero", axis=currency_axis("Amount")),
                color=alt.Color("component:N", title=""),
                tooltip=["program", "component", alt.Tooltip("amount:Q", format="$,.0f")],
            )
        )
        chart = to_vega_spec(bar)

    return {
        "filters": asdict(filters),
        "summary": summary,
        "summary_display": display_amounts(summary, ctx.get("currency", "AUD"), percent_keys=("utilization",)),
        "status_counts": status_counts(selected),
        "budgets": [to_record(b) for b in selected],
        "top_utilization": [to_record(b) for b in top_utilization(selected, filters.top_n)],
        "chart_rows": chart_rows,
        "budget_chart": chart,
    }
