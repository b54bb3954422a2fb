"""Core (UI-agnostic) applicant dashboard logic.

This package contains:
- row parsing and reconciliation (spreadsheet rows -> one record per applicant)
- data loading (XLSX/CSV -> pandas) and filter normalization
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
