from __future__ import annotations

import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ThresholdsModel(BaseModel):
    caution: float = 0.7
    at_risk: float = 0.9


class DashboardFiltersModel(BaseModel):
    program: str = "All"
    category: str = "All"
    search: str = ""
    payment_status: str = "All"
    tab: Literal["all", "outstanding", "paid", "overdue"] = "all"
    time_frame: Literal["monthly", "quarterly", "yearly"] = "monthly"
    year: Optional[int] = None
    top_n: int = 5
    thresholds: ThresholdsModel = Field(default_factory=ThresholdsModel)
    type: str = "All"
    status: str = "All"
    account_category: str = "All"
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None


class TransactionIn(BaseModel):
    id: Optional[int] = None
    date: dt.date
    program: str
    type: str = "Expense"
    account_category: str = "Uncategorized"
    amount: float = 0.0
    status: str = "Pending"
    reference: str = ""
    description: str = ""
    supplier: str = ""
    invoice_date: Optional[dt.date] = None
    payment_due_date: Optional[dt.date] = None
    payment_date: Optional[dt.date] = None
    payment_status: str = "Unpaid"


class BudgetIn(BaseModel):
    program: str
    total_budget: Optional[float] = None
    ytd_expenses: Optional[float] = None
    committed_expenses: Optional[float] = None
    ytd_income: Optional[float] = None
    notes: Optional[str] = None


class LineItemIn(BaseModel):
    description: str = ""
    quantity: float = 1.0
    unit_price: float = 0.0


class InvoiceIn(BaseModel):
    invoice_number: str = ""
    program: str
    date: dt.date
    due_date: dt.date
    client: str = "Client"
    items: List[LineItemIn] = Field(default_factory=list)
    tax_rate: float = 0.0
    notes: str = ""
    status: Literal["Draft", "Pending", "Sent", "Paid", "Overdue"] = "Draft"


class InvoiceStatusUpdate(BaseModel):
    status: Literal["Draft", "Pending", "Sent", "Paid", "Overdue"]
    payment_date: Optional[dt.date] = None


class SettingsUpdate(BaseModel):
    theme: Optional[Literal["light", "dark"]] = None
    currency: Optional[str] = None
    notifications: Optional[bool] = None
    compact_view: Optional[bool] = None
    date_format: Optional[str] = None
    default_view: Optional[str] = None
    auto_save: Optional[bool] = None
