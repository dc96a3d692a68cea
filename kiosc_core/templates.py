from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

import pandas as pd

from kiosc_core.errors import RecordNotFound
from kiosc_core.models import BUDGET_TRACKING, PROGRAMS, SUPPLIERS, TRANSACTION_ENTRY
from kiosc_core.workbook import write_workbook


@dataclass(frozen=True)
class TemplateSheet:
    name: str
    headers: List[str]
    sample_rows: List[List[Any]] = field(default_factory=list)


@dataclass(frozen=True)
class WorkbookTemplate:
    id: str
    name: str
    description: str
    filename: str
    sheets: List[TemplateSheet]


TEMPLATES: Dict[str, WorkbookTemplate] = {
    "programs": WorkbookTemplate(
        id="programs",
        name="Programs Template",
        description="Template for adding and managing program information",
        filename="KIOSC_Programs_Template.xlsx",
        sheets=[
            TemplateSheet(
                name=PROGRAMS,
                headers=["Name", "Category", "Budget", "StartDate", "EndDate", "Description"],
                sample_rows=[
                    ["Technology Outreach Program", "VCES", 150000, "2024-01-01", "2025-12-31", "Program for technology outreach"],
                    ["STEM Curriculum Development", "GDC", 75000, "2024-02-15", "2025-06-30", "Development of STEM curriculum materials"],
                ],
            )
        ],
    ),
    "budget": WorkbookTemplate(
        id="budget",
        name="Budget Tracking Template",
        description="Template for tracking program budget utilization",
        filename="KIOSC_Budget_Tracking_Template.xlsx",
        sheets=[
            TemplateSheet(
                name=BUDGET_TRACKING,
                headers=["Program", "TotalBudget", "YTDExpenses", "CommittedExpenses", "YTDIncome", "Notes"],
                sample_rows=[
                    ["Technology Outreach Program", 150000, 45000, 30000, 160000, "On track for Q2"],
                    ["STEM Curriculum Development", 75000, 40000, 20000, 80000, "Additional funding needed"],
                ],
            )
        ],
    ),
    "transactions": WorkbookTemplate(
        id="transactions",
        name="Transactions Template",
        description="Template for recording income and expense transactions",
        filename="KIOSC_Transactions_Template.xlsx",
        sheets=[
            TemplateSheet(
                name=TRANSACTION_ENTRY,
                headers=[
                    "Date", "Program", "Type", "AccountCategory", "Amount", "Status",
                    "Reference", "Description", "Supplier", "InvoiceDate", "PaymentDueDate",
                    "PaymentDate", "PaymentStatus",
                ],
                sample_rows=[
                    [
                        "2024-01-15", "Technology Outreach Program", "Income", "VCES", 50000, "Completed",
                        "INV-2024-001", "Initial funding payment", "Swinburne University", "2024-01-10",
                        "2024-02-10", "2024-01-30", "Paid",
                    ],
                    [
                        "2024-01-20", "Technology Outreach Program", "Expense", "VCES", -15000, "Completed",
                        "PO-2024-001", "Equipment purchase", "Tech Solutions Inc.", "2024-01-18",
                        "2024-02-18", "2024-02-15", "Paid",
                    ],
                ],
            )
        ],
    ),
    "suppliers": WorkbookTemplate(
        id="suppliers",
        name="Suppliers Template",
        description="Template for managing supplier information",
        filename="KIOSC_Suppliers_Template.xlsx",
        sheets=[
            TemplateSheet(
                name=SUPPLIERS,
                headers=["Name", "ContactPerson", "Email", "Phone", "Address", "Category", "Notes"],
                sample_rows=[
                    [
                        "Tech Solutions Inc.", "John Smith", "john@techsolutions.com", "555-1234",
                        "123 Tech St, Melbourne", "Equipment", "Preferred supplier for technical equipment",
                    ],
                    [
                        "STEM Consultants", "Sarah Johnson", "sarah@stemconsultants.com", "555-5678",
                        "456 Education Rd, Sydney", "Services", "Curriculum development specialists",
                    ],
                ],
            )
        ],
    ),
}


def get_template(template_id: str) -> WorkbookTemplate:
    try:
        return TEMPLATES[template_id]
    except KeyError:
        raise RecordNotFound(f"Unknown template '{template_id}'") from None


def build_template(template_id: str, *, include_samples: bool = True) -> bytes:
    """Render a template workbook: bold grey header row, optional sample rows."""
    template = get_template(template_id)
    sheets = {}
    for sheet in template.sheets:
        rows = sheet.sample_rows if include_samples else []
        sheets[sheet.name] = pd.DataFrame(rows, columns=sheet.headers)
    return write_workbook(sheets, style_header=True)
