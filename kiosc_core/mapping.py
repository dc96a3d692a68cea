from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from kiosc_core.budget import derive_budget, rollup_budgets
from kiosc_core.filters import Thresholds
from kiosc_core.models import (
    BUDGET_TRACKING,
    EXPENSE,
    PROGRAMS,
    SHEET_COLUMNS,
    SUPPLIERS,
    TRANSACTION_ENTRY,
    TRANSACTION_TYPES,
    UNPAID,
    AppData,
    BudgetTracking,
    Program,
    Supplier,
    Transaction,
)
from kiosc_core.workbook import SheetRows, is_excel_filename, read_workbook

logger = logging.getLogger(__name__)

NA_TOKENS = {"nan", "none", "null", "<na>", "nat"}
# Leading/trailing currency symbols or codes around the digits.
CURRENCY_AFFIX_RE = re.compile(r"^[^\d.]+|[^\d.]+$")
YEAR_FIRST_RE = re.compile(r"^(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})(?:$|[T ])")

# Extra spellings seen in hand-made sheets; canonical headers map to themselves.
HEADER_ALIASES: Dict[str, Dict[str, str]] = {
    PROGRAMS: {
        "program": "Name",
        "program name": "Name",
        "programme": "Name",
        "total budget": "Budget",
        "start": "StartDate",
        "start date": "StartDate",
        "end": "EndDate",
        "end date": "EndDate",
    },
    BUDGET_TRACKING: {
        "program name": "Program",
        "budget": "TotalBudget",
        "total budget": "TotalBudget",
        "ytd expenses": "YTDExpenses",
        "ytd expenditure": "YTDExpenses",
        "expenses": "YTDExpenses",
        "committed": "CommittedExpenses",
        "committed expenses": "CommittedExpenses",
        "ytd income": "YTDIncome",
        "income": "YTDIncome",
    },
    TRANSACTION_ENTRY: {
        "transaction date": "Date",
        "program name": "Program",
        "transaction type": "Type",
        "account category": "AccountCategory",
        "category": "AccountCategory",
        "ref": "Reference",
        "reference number": "Reference",
        "supplier name": "Supplier",
        "vendor": "Supplier",
        "invoice date": "InvoiceDate",
        "payment due date": "PaymentDueDate",
        "due date": "PaymentDueDate",
        "payment date": "PaymentDate",
        "payment status": "PaymentStatus",
    },
    SUPPLIERS: {
        "supplier name": "Name",
        "supplier": "Name",
        "contact person": "ContactPerson",
        "contact": "ContactPerson",
        "e-mail": "Email",
        "phone number": "Phone",
    },
}

SHEET_ALIASES = {
    "programs": PROGRAMS,
    "program": PROGRAMS,
    "budgettracking": BUDGET_TRACKING,
    "budget": BUDGET_TRACKING,
    "budgets": BUDGET_TRACKING,
    "transactionentry": TRANSACTION_ENTRY,
    "transactions": TRANSACTION_ENTRY,
    "suppliers": SUPPLIERS,
}

# Filename fragment -> sheet kind; checked in order, first match wins.
TEMPLATE_FILE_KINDS: List[Tuple[str, str]] = [
    ("revenue_terms", PROGRAMS),
    ("expenditure", TRANSACTION_ENTRY),
    ("budget", BUDGET_TRACKING),
    ("suppliers", SUPPLIERS),
]


def _header_key(value: object) -> str:
    return re.sub(r"[\s_]+", " ", str(value).strip().lower())


def _sheet_key(value: object) -> str:
    return re.sub(r"[^a-z]", "", str(value).lower())


def _canonical_headers(sheet: str) -> Dict[str, str]:
    lookup = {_header_key(h): h for h in SHEET_COLUMNS[sheet].values()}
    # CamelCase headers also arrive split, e.g. "Start Date" for "StartDate".
    lookup.update({_header_key(re.sub(r"(?<=[a-z])(?=[A-Z])", " ", h)): h for h in SHEET_COLUMNS[sheet].values()})
    lookup.update(HEADER_ALIASES.get(sheet, {}))
    return lookup


def canonicalize_row(row: Mapping[str, Any], sheet: str) -> Dict[str, Any]:
    """Rename known header spellings to the template header; the first non-empty value wins."""
    lookup = _canonical_headers(sheet)
    out: Dict[str, Any] = {}
    for key, value in row.items():
        target = lookup.get(_header_key(key), str(key).strip())
        if target in out and not is_blank(value) and is_blank(out[target]):
            out[target] = value
        elif target not in out:
            out[target] = value
    return out


# ---------------- Cell parsing ----------------
def is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        s = value.strip()
        return not s or s.lower() in NA_TOKENS
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def text(value: object, default: str = "") -> str:
    if is_blank(value):
        return default
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_number(value: object) -> Optional[float]:
    """Parse a numeric cell; returns None when the cell is blank or not a number.

    Strings may carry a currency prefix or suffix (``A$``, ``€``, ``AUD``),
    thousands separators and accounting-style parentheses for negatives:
    ``"($1,250.50)" -> -1250.5``, ``"-A$1,234.56" -> -1234.56``.
    """
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    s = str(value).strip()
    negative = s.startswith("(") and s.endswith(")")
    s = re.sub(r"[()\s,]", "", s)
    if "-" in re.match(r"[^\d.]*", s).group(0):
        negative = True
    s = CURRENCY_AFFIX_RE.sub("", s)
    try:
        out = float(s)
    except ValueError:
        return None
    if pd.isna(out):
        return None
    return -abs(out) if negative else out


def number(value: object, default: float = 0.0) -> float:
    out = parse_number(value)
    return default if out is None else out


def parse_date(value: object) -> Optional[date]:
    """Parse year-first strings (``2024-1-5``, ISO), datetimes, dd/mm/yyyy strings and Excel serial day numbers."""
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, date):
        return value if type(value) is date else value.date()
    if isinstance(value, (int, float)):
        if 0 < float(value) <= 60000:
            parsed = pd.to_datetime(value, unit="D", origin="1899-12-30", errors="coerce")
            return None if pd.isna(parsed) else parsed.date()
        return None
    s = str(value).strip()
    m = YEAR_FIRST_RE.match(s)
    if m:
        try:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError:
            return None
    parsed = pd.to_datetime(s, errors="coerce", dayfirst=True)
    if pd.isna(parsed):
        return None
    return parsed.date()


def add_years(d: date, years: int) -> date:
    try:
        return d.replace(year=d.year + years)
    except ValueError:
        # 29 Feb -> 28 Feb
        return d.replace(year=d.year + years, day=28)


def normalize_type(value: object) -> str:
    s = text(value, EXPENSE)
    for t in TRANSACTION_TYPES:
        if s.lower() == t.lower():
            return t
    logger.debug("Unrecognized transaction type %r kept as-is", s)
    return s


# ---------------- Row mappers ----------------
def map_programs(rows: Iterable[Mapping[str, Any]], *, today: Optional[date] = None) -> List[Program]:
    today = today or date.today()
    out: List[Program] = []
    for index, raw in enumerate(rows):
        row = canonicalize_row(raw, PROGRAMS)
        out.append(
            Program(
                id=index + 1,
                name=text(row.get("Name"), f"Program {index + 1}"),
                category=text(row.get("Category"), "Uncategorized"),
                budget=number(row.get("Budget")),
                start_date=parse_date(row.get("StartDate")) or today,
                end_date=parse_date(row.get("EndDate")) or add_years(today, 1),
            )
        )
    return out


def map_budget_tracking(rows: Iterable[Mapping[str, Any]], *, thresholds: Optional[Thresholds] = None) -> List[BudgetTracking]:
    out: List[BudgetTracking] = []
    for raw in rows:
        row = canonicalize_row(raw, BUDGET_TRACKING)
        total_budget = number(row.get("TotalBudget"))
        ytd_expenses = number(row.get("YTDExpenses"))
        committed_expenses = number(row.get("CommittedExpenses"))
        available, used, status = derive_budget(total_budget, ytd_expenses, committed_expenses, thresholds)
        out.append(
            BudgetTracking(
                program=text(row.get("Program"), "Unknown Program"),
                total_budget=total_budget,
                ytd_expenses=ytd_expenses,
                committed_expenses=committed_expenses,
                available_budget=available,
                percent_used=used,
                status=status,
                ytd_income=number(row.get("YTDIncome")),
                notes=text(row.get("Notes")),
            )
        )
    return out


def map_transactions(rows: Iterable[Mapping[str, Any]], *, today: Optional[date] = None) -> List[Transaction]:
    today = today or date.today()
    out: List[Transaction] = []
    for index, raw in enumerate(rows):
        row = canonicalize_row(raw, TRANSACTION_ENTRY)
        out.append(
            Transaction(
                id=index + 1,
                date=parse_date(row.get("Date")) or today,
                program=text(row.get("Program"), "Unknown Program"),
                type=normalize_type(row.get("Type")),
                account_category=text(row.get("AccountCategory"), "Uncategorized"),
                amount=number(row.get("Amount")),
                status=text(row.get("Status"), "Pending"),
                reference=text(row.get("Reference")),
                description=text(row.get("Description")),
                supplier=text(row.get("Supplier")),
                invoice_date=parse_date(row.get("InvoiceDate")),
                payment_due_date=parse_date(row.get("PaymentDueDate")),
                payment_date=parse_date(row.get("PaymentDate")),
                payment_status=text(row.get("PaymentStatus"), UNPAID),
            )
        )
    return out


def map_suppliers(rows: Iterable[Mapping[str, Any]]) -> List[Supplier]:
    out: List[Supplier] = []
    for index, raw in enumerate(rows):
        row = canonicalize_row(raw, SUPPLIERS)
        out.append(
            Supplier(
                id=index + 1,
                name=text(row.get("Name"), f"Supplier {index + 1}"),
                contact_person=text(row.get("ContactPerson")),
                email=text(row.get("Email")),
                phone=text(row.get("Phone")),
                address=text(row.get("Address")),
                category=text(row.get("Category"), "General"),
                notes=text(row.get("Notes")),
            )
        )
    return out


def find_sheet(excel_data: Mapping[str, List[Dict[str, Any]]], sheet: str) -> Optional[List[Dict[str, Any]]]:
    """Exact sheet name first, then a case/punctuation-insensitive alias."""
    if sheet in excel_data:
        return excel_data[sheet]
    for name, rows in excel_data.items():
        if SHEET_ALIASES.get(_sheet_key(name)) == sheet:
            return rows
    return None


def map_excel_to_app_data(
    excel_data: SheetRows,
    *,
    today: Optional[date] = None,
    thresholds: Optional[Thresholds] = None,
) -> AppData:
    """Map ``{sheet: rows}`` onto the application schema.

    Sheets that are missing leave their collection empty; missing fields
    inside a row fall back to defaults.
    """
    data = AppData()
    try:
        rows = find_sheet(excel_data, PROGRAMS)
        if rows is not None:
            data.programs = map_programs(rows, today=today)
        rows = find_sheet(excel_data, BUDGET_TRACKING)
        if rows is not None:
            data.budget_tracking = map_budget_tracking(rows, thresholds=thresholds)
        rows = find_sheet(excel_data, TRANSACTION_ENTRY)
        if rows is not None:
            data.transactions = map_transactions(rows, today=today)
        rows = find_sheet(excel_data, SUPPLIERS)
        if rows is not None:
            data.suppliers = map_suppliers(rows)
    except Exception:
        logger.exception("Error mapping Excel data to app data")
        raise
    logger.info(
        "Mapped %d programs, %d budgets, %d transactions, %d suppliers",
        len(data.programs),
        len(data.budget_tracking),
        len(data.transactions),
        len(data.suppliers),
    )
    return data


def classify_template_file(filename: str) -> Optional[str]:
    lowered = filename.lower()
    for fragment, sheet in TEMPLATE_FILE_KINDS:
        if fragment in lowered:
            return sheet
    return None


def _renumber(records: list) -> list:
    for i, rec in enumerate(records, start=1):
        rec.id = i
    return records


def map_existing_templates(
    files: Iterable[Tuple[str, bytes]],
    *,
    today: Optional[date] = None,
    thresholds: Optional[Thresholds] = None,
) -> AppData:
    """Map legacy single-purpose workbooks, classified by filename.

    Only the first sheet of each workbook is read. When no budget workbook is
    supplied, budget rows are rolled up from the imported programs and
    transactions.
    """
    data = AppData()
    for filename, payload in files:
        kind = classify_template_file(filename)
        if kind is None or not is_excel_filename(filename):
            logger.warning("Skipping unrecognized template file %s", filename)
            continue
        sheets = read_workbook(payload)
        rows = next(iter(sheets.values()), [])
        if kind == PROGRAMS:
            data.programs.extend(map_programs(rows, today=today))
        elif kind == TRANSACTION_ENTRY:
            data.transactions.extend(map_transactions(rows, today=today))
        elif kind == BUDGET_TRACKING:
            data.budget_tracking.extend(map_budget_tracking(rows, thresholds=thresholds))
        else:
            data.suppliers.extend(map_suppliers(rows))
        logger.info("Mapped %s as %s (%d rows)", filename, kind, len(rows))

    _renumber(data.programs)
    _renumber(data.transactions)
    _renumber(data.suppliers)
    if not data.budget_tracking and data.programs:
        data.budget_tracking = rollup_budgets(data.programs, data.transactions, thresholds)
    return data
