from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Any, Dict, List, Optional

import pandas as pd

from kiosc_core.filters import ALL, DashboardFilters, normalize_filters
from kiosc_core.models import EXPENSE, INCOME, AppData, Program, Transaction
from kiosc_core.settings import UserSettings

TRANSACTION_COLUMNS = list(Transaction.__dataclass_fields__)


def transactions_frame(transactions: List[Transaction]) -> pd.DataFrame:
    """Transactions as a DataFrame with Timestamp dates and an unsigned ``value`` column.

    ``value`` is the amount as reported on the dashboard: income as entered,
    expenses as an absolute value, anything else zero.
    """
    if not transactions:
        df = pd.DataFrame(columns=TRANSACTION_COLUMNS + ["value"])
        df["date"] = pd.to_datetime(df["date"])
        df["amount"] = df["amount"].astype(float)
        df["value"] = df["value"].astype(float)
        return df
    df = pd.DataFrame([asdict(t) for t in transactions], columns=TRANSACTION_COLUMNS)
    for col in ["date", "invoice_date", "payment_due_date", "payment_date"]:
        df[col] = pd.to_datetime(df[col], errors="coerce")
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0.0)
    df["value"] = 0.0
    df.loc[df["type"] == INCOME, "value"] = df["amount"]
    df.loc[df["type"] == EXPENSE, "value"] = df["amount"].abs()
    return df


def income_expense_totals(df: pd.DataFrame) -> Dict[str, float]:
    if df.empty:
        return {"income": 0.0, "expenses": 0.0, "net": 0.0}
    income = float(df.loc[df["type"] == INCOME, "value"].sum())
    expenses = float(df.loc[df["type"] == EXPENSE, "value"].sum())
    return {"income": income, "expenses": expenses, "net": income - expenses}


def categories(programs: List[Program]) -> List[str]:
    """Distinct program categories in first-seen order."""
    seen: Dict[str, None] = {}
    for p in programs:
        if p.category:
            seen.setdefault(p.category, None)
    return list(seen)


def available_years(transactions: List[Transaction]) -> List[int]:
    return sorted({t.date.year for t in transactions if t.date})


def prepare_context(
    filters: dict | DashboardFilters,
    app_data: AppData,
    *,
    today: Optional[date] = None,
    settings: Optional[UserSettings] = None,
) -> Dict[str, Any]:
    """Apply the program/category filters once and hand every page the same slices.

    ``settings`` supplies the currency and date pattern used for display labels.
    """
    filt = filters if isinstance(filters, DashboardFilters) else normalize_filters(filters)
    today = today or date.today()
    settings = settings or UserSettings()

    programs = list(app_data.programs)
    if filt.category != ALL:
        programs = [p for p in programs if p.category == filt.category]
    if filt.program != ALL:
        programs = [p for p in programs if p.name == filt.program]

    transactions = list(app_data.transactions)
    if filt.program != ALL:
        transactions = [t for t in transactions if t.program == filt.program]
    elif filt.category != ALL:
        names = {p.name for p in programs}
        transactions = [t for t in transactions if t.program in names]

    tx_df = transactions_frame(transactions)
    year = filt.year
    year_df = tx_df[tx_df["date"].dt.year == year] if year is not None and not tx_df.empty else tx_df

    return {
        "filters": filt,
        "today": today,
        "programs": programs,
        "all_programs": list(app_data.programs),
        "budget_tracking": list(app_data.budget_tracking),
        "transactions": transactions,
        "suppliers": list(app_data.suppliers),
        "invoices": list(app_data.invoices),
        "transactions_df": tx_df,
        "transactions_year_df": year_df,
        "currency": settings.currency,
        "date_format": settings.date_format,
    }
