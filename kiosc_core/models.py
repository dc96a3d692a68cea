from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

PROGRAMS = "Programs"
BUDGET_TRACKING = "Budget_Tracking"
TRANSACTION_ENTRY = "Transaction_Entry"
SUPPLIERS = "Suppliers"

ON_TRACK = "On Track"
CAUTION = "Caution"
AT_RISK = "At Risk"

INCOME = "Income"
EXPENSE = "Expense"
TRANSFER = "Transfer"
TRANSACTION_TYPES = (INCOME, EXPENSE, TRANSFER)

COMPLETED = "Completed"
PAID = "Paid"
UNPAID = "Unpaid"
PENDING = "Pending"
OUTSTANDING = "Outstanding"
OVERDUE = "Overdue"

INVOICE_STATUSES = ("Draft", PENDING, "Sent", PAID, OVERDUE)


@dataclass
class Program:
    id: int
    name: str
    category: str
    budget: float
    start_date: date
    end_date: date


@dataclass
class BudgetTracking:
    program: str
    total_budget: float = 0.0
    ytd_expenses: float = 0.0
    committed_expenses: float = 0.0
    available_budget: float = 0.0
    percent_used: float = 0.0
    status: str = ON_TRACK
    ytd_income: float = 0.0
    notes: str = ""


@dataclass
class Transaction:
    id: int
    date: date
    program: str
    type: str = EXPENSE
    account_category: str = "Uncategorized"
    amount: float = 0.0
    status: str = PENDING
    reference: str = ""
    description: str = ""
    supplier: str = ""
    invoice_date: Optional[date] = None
    payment_due_date: Optional[date] = None
    payment_date: Optional[date] = None
    payment_status: str = UNPAID


@dataclass
class Supplier:
    id: int
    name: str
    contact_person: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    category: str = "General"
    notes: str = ""


@dataclass
class InvoiceLineItem:
    description: str = ""
    quantity: float = 1.0
    unit_price: float = 0.0
    amount: float = 0.0


@dataclass
class Invoice:
    id: int
    invoice_number: str
    program: str
    date: date
    due_date: date
    client: str = "Client"
    items: List[InvoiceLineItem] = field(default_factory=list)
    subtotal: float = 0.0
    tax_rate: float = 0.0
    tax: float = 0.0
    total: float = 0.0
    notes: str = ""
    status: str = "Draft"
    payment_date: Optional[date] = None
    created_at: Optional[date] = None


@dataclass
class AppData:
    programs: List[Program] = field(default_factory=list)
    budget_tracking: List[BudgetTracking] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)
    suppliers: List[Supplier] = field(default_factory=list)
    invoices: List[Invoice] = field(default_factory=list)

    def collections(self) -> Dict[str, list]:
        """Sheet name -> records, in workbook order."""
        return {
            PROGRAMS: self.programs,
            BUDGET_TRACKING: self.budget_tracking,
            TRANSACTION_ENTRY: self.transactions,
            SUPPLIERS: self.suppliers,
        }


# Record field -> workbook header, in template column order.
SHEET_COLUMNS: Dict[str, Dict[str, str]] = {
    PROGRAMS: {
        "name": "Name",
        "category": "Category",
        "budget": "Budget",
        "start_date": "StartDate",
        "end_date": "EndDate",
    },
    BUDGET_TRACKING: {
        "program": "Program",
        "total_budget": "TotalBudget",
        "ytd_expenses": "YTDExpenses",
        "committed_expenses": "CommittedExpenses",
        "available_budget": "AvailableBudget",
        "percent_used": "PercentUsed",
        "status": "Status",
        "ytd_income": "YTDIncome",
        "notes": "Notes",
    },
    TRANSACTION_ENTRY: {
        "date": "Date",
        "program": "Program",
        "type": "Type",
        "account_category": "AccountCategory",
        "amount": "Amount",
        "status": "Status",
        "reference": "Reference",
        "description": "Description",
        "supplier": "Supplier",
        "invoice_date": "InvoiceDate",
        "payment_due_date": "PaymentDueDate",
        "payment_date": "PaymentDate",
        "payment_status": "PaymentStatus",
    },
    SUPPLIERS: {
        "name": "Name",
        "contact_person": "ContactPerson",
        "email": "Email",
        "phone": "Phone",
        "address": "Address",
        "category": "Category",
        "notes": "Notes",
    },
}


def to_record(obj: Any) -> Dict[str, Any]:
    """Dataclass -> plain dict with ISO dates (JSON-serializable)."""
    out = asdict(obj)
    return {k: _iso(v) for k, v in out.items()}


def _iso(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, list):
        return [{k: _iso(v) for k, v in item.items()} if isinstance(item, dict) else _iso(item) for item in value]
    return value
