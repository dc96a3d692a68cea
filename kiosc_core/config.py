from __future__ import annotations

import logging
import os
from typing import List

from dotenv import load_dotenv

load_dotenv()

EXPORT_FILENAME = os.getenv("KIOSC_EXPORT_FILENAME", "KIOSC_Finance_Data.xlsx")
LOG_LEVEL = os.getenv("KIOSC_LOG_LEVEL", "INFO").upper()
API_HOST = os.getenv("KIOSC_API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("KIOSC_API_PORT", "8000"))
LOAD_SAMPLE_DATA = os.getenv("KIOSC_LOAD_SAMPLE_DATA", "1").strip().lower() not in {"0", "false", "no", ""}

# Invoices with no explicit due date fall due this many days after the invoice date.
INVOICE_TERMS_DAYS = int(os.getenv("KIOSC_INVOICE_TERMS_DAYS", "30"))
UPCOMING_WINDOW_DAYS = 30


def cors_origins() -> List[str]:
    raw = os.getenv("KIOSC_CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    return [o.strip() for o in raw.split(",") if o.strip()]


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
