from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

ALL = "All"
TIME_FRAMES = ("monthly", "quarterly", "yearly")
INVOICE_TABS = ("all", "outstanding", "paid", "overdue")


@dataclass(frozen=True)
class Thresholds:
    caution: float = 0.7
    at_risk: float = 0.9


@dataclass(frozen=True)
class DashboardFilters:
    program: str = ALL
    category: str = ALL
    search: str = ""
    payment_status: str = ALL
    tab: str = "all"
    time_frame: str = "monthly"
    year: Optional[int] = None
    top_n: int = 5
    thresholds: Thresholds = field(default_factory=Thresholds)
    type: str = ALL
    status: str = ALL
    account_category: str = ALL
    start_date: Optional[date] = None
    end_date: Optional[date] = None


def _as_choice(value: object, default: str = ALL) -> str:
    if value is None:
        return default
    s = str(value).strip()
    return s or default


def _as_fraction(value: object, default: float) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError):
        return default
    return min(max(out, 0.0), 10.0)


def _as_date(value: object) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def normalize_filters(raw: dict) -> DashboardFilters:
    program = _as_choice(raw.get("program"))
    category = _as_choice(raw.get("category"))
    search = (raw.get("search") or "").strip()
    payment_status = _as_choice(raw.get("payment_status"))

    tab = _as_choice(raw.get("tab"), "all").lower()
    if tab not in INVOICE_TABS:
        tab = "all"

    time_frame = _as_choice(raw.get("time_frame"), "monthly").lower()
    if time_frame not in TIME_FRAMES:
        time_frame = "monthly"

    year = raw.get("year")
    try:
        year = int(year) if year not in (None, "", ALL) else None
    except (TypeError, ValueError):
        year = None

    top_n = raw.get("top_n", 5)
    try:
        top_n = int(top_n)
    except (TypeError, ValueError):
        top_n = 5
    top_n = max(1, min(200, top_n))

    t = raw.get("thresholds") or {}
    caution = _as_fraction(t.get("caution"), 0.7)
    at_risk = _as_fraction(t.get("at_risk"), 0.9)
    if caution > at_risk:
        caution, at_risk = at_risk, caution

    start_date = _as_date(raw.get("start_date"))
    end_date = _as_date(raw.get("end_date"))
    if start_date and end_date and start_date > end_date:
        start_date, end_date = end_date, start_date

    return DashboardFilters(
        program=program,
        category=category,
        search=search,
        payment_status=payment_status,
        tab=tab,
        time_frame=time_frame,
        year=year,
        top_n=top_n,
        thresholds=Thresholds(caution=caution, at_risk=at_risk),
        type=_as_choice(raw.get("type")),
        status=_as_choice(raw.get("status")),
        account_category=_as_choice(raw.get("account_category")),
        start_date=start_date,
        end_date=end_date,
    )
