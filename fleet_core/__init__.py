"""Core (UI-agnostic) fleet dashboard logic.

This package contains:
- sheet catalogue and CSV export fetching (Google Sheets -> text)
- CSV parsing and per-sheet normalization into zone/date records
- concurrent loading of every sheet into one dataset map
- filter normalization and the record filter engine
- chart-data builders and chart helpers (Altair -> Vega-Lite spec dict)
- page compute functions (JSON-serializable payloads)
"""
