from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from kiosc_core.charts import currency_axis, to_vega_spec
from kiosc_core.filters import DashboardFilters
from kiosc_core.models import EXPENSE, INCOME

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
PERIOD_COLUMNS = ["period", "income", "expenses", "net"]


def _period_label(ts: pd.Timestamp, time_frame: str) -> str:
    if time_frame == "quarterly":
        return f"Q{(ts.month - 1) // 3 + 1} {ts.year}"
    if time_frame == "yearly":
        return str(ts.year)
    return f"{MONTHS[ts.month - 1]} {ts.year}"


def _period_sort_key(ts: pd.Timestamp, time_frame: str) -> int:
    if time_frame == "quarterly":
        return ts.year * 10 + (ts.month - 1) // 3
    if time_frame == "yearly":
        return ts.year
    return ts.year * 100 + ts.month


def income_expense_by_period(tx_df: pd.DataFrame, time_frame: str = "monthly") -> pd.DataFrame:
    """Income and expenses grouped by month / quarter / year, oldest period first."""
    if tx_df.empty:
        return pd.DataFrame(columns=PERIOD_COLUMNS)
    df = tx_df.dropna(subset=["date"])
    df = df[df["type"].isin([INCOME, EXPENSE])].copy()
    if df.empty:
        return pd.DataFrame(columns=PERIOD_COLUMNS)
    df["period"] = df["date"].apply(lambda ts: _period_label(ts, time_frame))
    df["sort_key"] = df["date"].apply(lambda ts: _period_sort_key(ts, time_frame))
    df["income"] = df["value"].where(df["type"] == INCOME, 0.0)
    df["expenses"] = df["value"].where(df["type"] == EXPENSE, 0.0)
    grouped = (
        df.groupby(["sort_key", "period"])
        .agg(income=("income", "sum"), expenses=("expenses", "sum"))
        .reset_index()
        .sort_values("sort_key")
    )
    grouped["net"] = grouped["income"] - grouped["expenses"]
    return grouped[PERIOD_COLUMNS].reset_index(drop=True)


def monthly_summary(tx_df: pd.DataFrame, year: Optional[int] = None) -> List[Dict[str, Any]]:
    """Twelve rows (Jan..Dec) with running year-to-date income and expenses."""
    income = [0.0] * 12
    expenses = [0.0] * 12
    if not tx_df.empty:
        df = tx_df.dropna(subset=["date"])
        if year is not None:
            df = df[df["date"].dt.year == year]
        for month, grp in df.groupby(df["date"].dt.month):
            idx = int(month) - 1
            income[idx] = float(grp.loc[grp["type"] == INCOME, "value"].sum())
            expenses[idx] = float(grp.loc[grp["type"] == EXPENSE, "value"].sum())

    rows = []
    ytd_income = 0.0
    ytd_expenses = 0.0
    for idx, month in enumerate(MONTHS):
        ytd_income += income[idx]
        ytd_expenses += expenses[idx]
        rows.append(
            {
                "month": month,
                "income": income[idx],
                "expenses": expenses[idx],
                "net": income[idx] - expenses[idx],
                "ytd_income": ytd_income,
                "ytd_expenses": ytd_expenses,
                "ytd_net": ytd_income - ytd_expenses,
            }
        )
    return rows


def category_expenses(tx_df: pd.DataFrame, categories: Optional[List[str]] = None) -> List[Dict[str, Any]]:
    """Expense totals per account category with each category's share of the total.

    When ``categories`` is given every one of them is reported, zero or not,
    and expenses outside the list are left out.
    """
    totals: Dict[str, float] = {c: 0.0 for c in categories or []}
    if not tx_df.empty:
        expenses = tx_df[tx_df["type"] == EXPENSE]
        for cat, value in expenses.groupby("account_category")["value"].sum().items():
            name = str(cat) or "Uncategorized"
            if categories is not None and name not in totals:
                continue
            totals[name] = totals.get(name, 0.0) + float(value)
    grand = sum(totals.values())
    rows = [
        {"category": cat, "amount": amount, "share": amount / grand if grand else 0.0}
        for cat, amount in totals.items()
    ]
    if categories is None:
        rows.sort(key=lambda r: r["amount"], reverse=True)
    return rows


def compute_reports(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    tx_df: pd.DataFrame = ctx.get("transactions_df", pd.DataFrame())
    year_df: pd.DataFrame = ctx.get("transactions_year_df", tx_df)

    periods = income_expense_by_period(year_df, filters.time_frame)
    chart = None
    if not periods.empty:
        long = periods.melt(id_vars=["period"], value_vars=["income", "expenses"], var_name="series", value_name="amount")
        bars = (
            alt.Chart(long)
            .mark_bar()
            .encode(
                x=alt.X("period:N", sort=periods["period"].tolist(), title=""),
                xOffset="series:N",
                y=alt.Y("amount:Q", axis=currency_axis("Amount")),
                color=alt.Color("series:N", title=""),
                tooltip=["period", "series", alt.Tooltip("amount:Q", format="$,.0f")],
            )
        )
        chart = to_vega_spec(bars)

    return {
        "filters": asdict(filters),
        "periods": periods.to_dict(orient="records"),
        "monthly_summary": monthly_summary(tx_df, filters.year),
        "category_expenses": category_expenses(year_df),
        "income_expense_chart": chart,
    }
