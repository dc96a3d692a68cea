from __future__ import annotations

import io
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Mapping, Sequence, Union

import pandas as pd
from openpyxl.styles import Font, PatternFill

from kiosc_core.errors import WorkbookError
from kiosc_core.models import SHEET_COLUMNS, AppData

logger = logging.getLogger(__name__)

WorkbookSource = Union[bytes, bytearray, str, Path, BinaryIO]
SheetRows = Dict[str, List[Dict[str, Any]]]

EXCEL_SUFFIXES = (".xlsx", ".xlsm")

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(fill_type="solid", fgColor="DDDDDD")


def _as_io(source: WorkbookSource):
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(bytes(source))
    return source


def cell_value(value: Any) -> Any:
    """Normalize one cell: blanks -> "", dates -> ISO yyyy-mm-dd, strings stripped."""
    if value is None:
        return ""
    if isinstance(value, (pd.Timestamp, datetime)):
        if pd.isna(value):
            return ""
        return value.strftime("%Y-%m-%d")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return value.strip()
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return value


def frame_to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    df = df.copy()
    df.columns = [str(c).strip() for c in df.columns]
    df = df.loc[:, [not c.startswith("Unnamed:") for c in df.columns]]
    df = df.dropna(how="all")
    rows: List[Dict[str, Any]] = []
    for record in df.to_dict(orient="records"):
        row = {k: cell_value(v) for k, v in record.items()}
        if any(v != "" for v in row.values()):
            rows.append(row)
    return rows


def read_workbook(source: WorkbookSource) -> SheetRows:
    """Parse a workbook into ``{sheet name: [row dict, ...]}``.

    Every sheet is read with its first row as the header. Empty cells come
    back as ``""`` and date cells as ISO strings so that the field mapper
    only ever sees strings and numbers.
    """
    try:
        sheets = pd.read_excel(_as_io(source), sheet_name=None, dtype=object, engine="openpyxl")
    except Exception as exc:
        raise WorkbookError(f"Error processing Excel file: {exc}") from exc
    result = {str(name): frame_to_rows(df) for name, df in sheets.items()}
    logger.info("Read workbook with sheets %s", {k: len(v) for k, v in result.items()})
    return result


def write_workbook(sheets: Mapping[str, Union[pd.DataFrame, Sequence[Mapping[str, Any]]]], *, style_header: bool = False) -> bytes:
    """Write one sheet per non-empty entry and return the XLSX bytes."""
    frames = {}
    for name, data in sheets.items():
        df = data if isinstance(data, pd.DataFrame) else pd.DataFrame(list(data))
        if df.empty and not len(df.columns):
            continue
        frames[name] = df
    if not frames:
        raise WorkbookError("Nothing to export: every sheet is empty")

    buf = io.BytesIO()
    try:
        with pd.ExcelWriter(buf, engine="openpyxl") as writer:
            for name, df in frames.items():
                df.to_excel(writer, sheet_name=name[:31], index=False)
                if style_header:
                    ws = writer.sheets[name[:31]]
                    for cell in ws[1]:
                        cell.font = HEADER_FONT
                        cell.fill = HEADER_FILL
    except Exception as exc:
        raise WorkbookError(f"Error writing Excel file: {exc}") from exc
    return buf.getvalue()


def app_data_frames(data: AppData) -> Dict[str, pd.DataFrame]:
    """Collections -> DataFrames with template headers; empty collections are skipped."""
    frames: Dict[str, pd.DataFrame] = {}
    for sheet, records in data.collections().items():
        if not records:
            continue
        columns = SHEET_COLUMNS[sheet]
        rows = []
        for rec in records:
            rows.append({header: _export_value(getattr(rec, attr)) for attr, header in columns.items()})
        frames[sheet] = pd.DataFrame(rows, columns=list(columns.values()))
    return frames


def _export_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return value


def export_app_data(data: AppData) -> bytes:
    frames = app_data_frames(data)
    payload = write_workbook(frames)
    logger.info("Exported workbook with sheets %s", {k: len(v) for k, v in frames.items()})
    return payload


def is_excel_filename(name: str) -> bool:
    return name.lower().endswith(EXCEL_SUFFIXES)
