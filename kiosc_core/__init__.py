"""Core (UI-agnostic) finance logic.

This package contains:
- workbook reading/writing (XLSX <-> row dicts, via pandas/openpyxl)
- spreadsheet row -> record mapping with default substitution
- budget utilization and status classification
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
