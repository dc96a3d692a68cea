"""Demo workbook content used until the first import."""

from __future__ import annotations

from kiosc_core.mapping import map_excel_to_app_data
from kiosc_core.models import BUDGET_TRACKING, PROGRAMS, SUPPLIERS, TRANSACTION_ENTRY, AppData
from kiosc_core.workbook import SheetRows

SAMPLE_ROWS: SheetRows = {
    PROGRAMS: [
        {"Name": "Technology Outreach Program", "Category": "VCES", "Budget": 150000, "StartDate": "2024-01-01", "EndDate": "2025-12-31"},
        {"Name": "STEM Curriculum Development", "Category": "GDC", "Budget": 75000, "StartDate": "2024-02-15", "EndDate": "2025-06-30"},
        {"Name": "School Partnership Initiative", "Category": "Commercial", "Budget": 120000, "StartDate": "2024-03-01", "EndDate": "2025-08-31"},
        {"Name": "Innovation Workshop Series", "Category": "Operations", "Budget": 45000, "StartDate": "2024-04-15", "EndDate": "2025-04-14"},
        {"Name": "Digital Literacy Program", "Category": "VCES", "Budget": 90000, "StartDate": "2024-05-01", "EndDate": "2025-10-31"},
    ],
    BUDGET_TRACKING: [
        {"Program": "Technology Outreach Program", "TotalBudget": 150000, "YTDExpenses": 45000, "CommittedExpenses": 30000, "YTDIncome": 160000},
        {"Program": "STEM Curriculum Development", "TotalBudget": 75000, "YTDExpenses": 40000, "CommittedExpenses": 20000, "YTDIncome": 80000},
        {"Program": "School Partnership Initiative", "TotalBudget": 120000, "YTDExpenses": 80000, "CommittedExpenses": 30000, "YTDIncome": 125000},
        {"Program": "Innovation Workshop Series", "TotalBudget": 45000, "YTDExpenses": 10000, "CommittedExpenses": 5000, "YTDIncome": 50000},
        {"Program": "Digital Literacy Program", "TotalBudget": 90000, "YTDExpenses": 30000, "CommittedExpenses": 15000, "YTDIncome": 92000},
    ],
    TRANSACTION_ENTRY: [
        {
            "Date": "2024-01-15", "Program": "Technology Outreach Program", "Type": "Income", "AccountCategory": "VCES",
            "Amount": 50000, "Status": "Completed", "Reference": "INV-2024-001", "Description": "Initial funding payment",
            "Supplier": "Swinburne University", "InvoiceDate": "2024-01-10", "PaymentDueDate": "2024-02-10",
            "PaymentDate": "2024-01-30", "PaymentStatus": "Paid",
        },
        {
            "Date": "2024-01-20", "Program": "Technology Outreach Program", "Type": "Expense", "AccountCategory": "VCES",
            "Amount": -15000, "Status": "Completed", "Reference": "PO-2024-001", "Description": "Equipment purchase",
            "Supplier": "Tech Solutions Inc.", "InvoiceDate": "2024-01-18", "PaymentDueDate": "2024-02-18",
            "PaymentDate": "2024-02-15", "PaymentStatus": "Paid",
        },
        {
            "Date": "2024-02-05", "Program": "STEM Curriculum Development", "Type": "Income", "AccountCategory": "GDC",
            "Amount": 40000, "Status": "Completed", "Reference": "INV-2024-002", "Description": "First installment",
            "Supplier": "Education Department", "InvoiceDate": "2024-02-01", "PaymentDueDate": "2024-03-01",
            "PaymentDate": "2024-02-25", "PaymentStatus": "Paid",
        },
        {
            "Date": "2024-02-18", "Program": "STEM Curriculum Development", "Type": "Expense", "AccountCategory": "GDC",
            "Amount": -18000, "Status": "Completed", "Reference": "PO-2024-002", "Description": "Consultant fees",
            "Supplier": "STEM Consultants", "InvoiceDate": "2024-02-15", "PaymentDueDate": "2024-03-15",
            "PaymentDate": "", "PaymentStatus": "Pending",
        },
        {
            "Date": "2024-06-01", "Program": "School Partnership Initiative", "Type": "Income", "AccountCategory": "Commercial",
            "Amount": 40000, "Status": "Completed", "Reference": "INV-2024-007", "Description": "Second installment",
            "Supplier": "School District", "InvoiceDate": "2024-05-28", "PaymentDueDate": "2024-06-28",
            "PaymentDate": "", "PaymentStatus": "Outstanding",
        },
    ],
    SUPPLIERS: [
        {
            "Name": "Tech Solutions Inc.", "ContactPerson": "John Smith", "Email": "john@techsolutions.com", "Phone": "555-1234",
            "Address": "123 Tech St, Melbourne", "Category": "Equipment", "Notes": "Preferred supplier for technical equipment",
        },
        {
            "Name": "STEM Consultants", "ContactPerson": "Sarah Johnson", "Email": "sarah@stemconsultants.com", "Phone": "555-5678",
            "Address": "456 Education Rd, Sydney", "Category": "Services", "Notes": "Curriculum development specialists",
        },
        {
            "Name": "Office Supplies Co.", "ContactPerson": "Michael Wong", "Email": "michael@officesupplies.com", "Phone": "555-9012",
            "Address": "789 Business Ave, Brisbane", "Category": "Supplies", "Notes": "Standard office supplies vendor",
        },
    ],
}


def sample_app_data() -> AppData:
    return map_excel_to_app_data(SAMPLE_ROWS)
