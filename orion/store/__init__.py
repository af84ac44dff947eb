"""
orion/store — report persistence.
"""

from orion.store.report_store import (
    InMemoryReportStore,
    JsonFileReportStore,
    ReportStore,
    StoreError,
)

__all__ = [
    "InMemoryReportStore",
    "JsonFileReportStore",
    "ReportStore",
    "StoreError",
]
