from __future__ import annotations

import copy
import logging
import threading
from dataclasses import replace
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

from kiosc_core.budget import refresh_budget
from kiosc_core.data import categories
from kiosc_core.errors import KioscError, RecordNotFound
from kiosc_core.filters import Thresholds
from kiosc_core.mapping import map_excel_to_app_data, map_existing_templates
from kiosc_core.metrics_invoices import INVOICE_ID_BASE, apply_totals, derive_invoices
from kiosc_core.models import INVOICE_STATUSES, PAID, AppData, BudgetTracking, Invoice, Transaction
from kiosc_core.sample_data import sample_app_data
from kiosc_core.settings import UserSettings, merge_settings
from kiosc_core.workbook import export_app_data, read_workbook

logger = logging.getLogger(__name__)

BUDGET_INPUT_FIELDS = {"total_budget", "ytd_expenses", "committed_expenses", "ytd_income", "notes"}


class FinanceStore:
    """In-memory session state: the current workbook data plus display settings.

    Every import replaces the data wholesale. Reads hand out deep copies so
    callers never observe a half-applied update.
    """

    def __init__(
        self,
        data: Optional[AppData] = None,
        *,
        thresholds: Optional[Thresholds] = None,
        with_sample: bool = True,
    ):
        self._lock = threading.RLock()
        self._data = data
        self._with_sample = with_sample
        self.thresholds = thresholds or Thresholds()
        self.settings = UserSettings()
        self.source: Optional[str] = None

    def initialize(self) -> AppData:
        with self._lock:
            if self._data is None:
                if self._with_sample:
                    self._data = sample_app_data()
                    self.source = "sample"
                else:
                    self._data = AppData()
                self._data.invoices = derive_invoices(self._data.transactions)
            return self._data

    def get_data(self) -> AppData:
        with self._lock:
            return copy.deepcopy(self._data if self._data is not None else self.initialize())

    def _replace(self, data: AppData, source: str) -> AppData:
        data.invoices = derive_invoices(data.transactions)
        with self._lock:
            self._data = data
            self.source = source
            snapshot = copy.deepcopy(data)
        logger.info("Session data replaced from %s", source)
        return snapshot

    # ---------------- Import / export ----------------
    def load_workbook(self, payload: bytes, filename: str = "upload.xlsx", *, today: Optional[date] = None) -> AppData:
        sheets = read_workbook(payload)
        return self._replace(map_excel_to_app_data(sheets, today=today, thresholds=self.thresholds), filename)

    def load_templates(self, files: Iterable[Tuple[str, bytes]], *, today: Optional[date] = None) -> AppData:
        files = list(files)
        data = map_existing_templates(files, today=today, thresholds=self.thresholds)
        return self._replace(data, ", ".join(name for name, _ in files))

    def export(self) -> bytes:
        return export_app_data(self.get_data())

    # ---------------- Mutations ----------------
    def add_transaction(self, transaction: Transaction) -> Transaction:
        """Append a transaction; a falsy id is replaced with max(id) + 1."""
        with self._lock:
            data = self._data if self._data is not None else self.initialize()
            if not transaction.id:
                transaction = replace(transaction, id=max((t.id or 0 for t in data.transactions), default=0) + 1)
            data.transactions.append(transaction)
            data.invoices = derive_invoices(data.transactions) + [i for i in data.invoices if i.id < INVOICE_ID_BASE]
            return copy.deepcopy(transaction)

    def upsert_budget(self, program: str, **changes: Any) -> BudgetTracking:
        """Create or update the budget row for ``program``; derived fields are recomputed."""
        unknown = set(changes) - BUDGET_INPUT_FIELDS
        if unknown:
            raise KioscError(f"Unknown budget fields: {', '.join(sorted(unknown))}")
        with self._lock:
            data = self._data if self._data is not None else self.initialize()
            for i, existing in enumerate(data.budget_tracking):
                if existing.program == program:
                    updated = refresh_budget(replace(existing, **changes), self.thresholds)
                    data.budget_tracking[i] = updated
                    return copy.deepcopy(updated)
            budget = refresh_budget(BudgetTracking(program=program, **changes), self.thresholds)
            data.budget_tracking.append(budget)
            return copy.deepcopy(budget)

    def categories(self) -> List[str]:
        with self._lock:
            data = self._data if self._data is not None else self.initialize()
            return categories(data.programs)

    # ---------------- Invoices ----------------
    def create_invoice(self, invoice: Invoice) -> Invoice:
        """Manually created invoices are numbered below the derived ones (1..999)."""
        with self._lock:
            data = self._data if self._data is not None else self.initialize()
            manual = [i.id for i in data.invoices if i.id < INVOICE_ID_BASE]
            new_id = max(manual, default=0) + 1
            invoice = replace(
                invoice,
                id=new_id,
                invoice_number=invoice.invoice_number or f"INV-{new_id:04d}",
                created_at=invoice.created_at or date.today(),
            )
            apply_totals(invoice)
            data.invoices.append(invoice)
            return copy.deepcopy(invoice)

    def _find_invoice(self, data: AppData, invoice_id: int) -> int:
        for i, inv in enumerate(data.invoices):
            if inv.id == invoice_id:
                return i
        raise RecordNotFound(f"Invoice {invoice_id} not found")

    def update_invoice_status(self, invoice_id: int, status: str, *, payment_date: Optional[date] = None) -> Invoice:
        if status not in INVOICE_STATUSES:
            raise KioscError(f"Unknown invoice status '{status}'")
        with self._lock:
            data = self._data if self._data is not None else self.initialize()
            idx = self._find_invoice(data, invoice_id)
            inv = data.invoices[idx]
            inv.status = status
            if status == PAID:
                inv.payment_date = payment_date or inv.payment_date or date.today()
            return copy.deepcopy(inv)

    def delete_invoice(self, invoice_id: int) -> None:
        with self._lock:
            data = self._data if self._data is not None else self.initialize()
            del data.invoices[self._find_invoice(data, invoice_id)]

    # ---------------- Settings ----------------
    def update_settings(self, changes: Dict[str, Any]) -> UserSettings:
        with self._lock:
            self.settings = merge_settings(self.settings, changes)
            return self.settings

    def reset_settings(self) -> UserSettings:
        with self._lock:
            self.settings = UserSettings()
            return self.settings
