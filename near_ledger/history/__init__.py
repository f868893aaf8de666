"""
Transaction history operations: search, export, summary, categorize.
"""

from near_ledger.history.service import (
    CategorizeResult,
    ExportResult,
    OperationResult,
    SearchEntry,
    SearchResult,
    SummaryResult,
    categorize_history,
    export_history,
    fetch_all_transactions,
    search_history,
    summarize_history,
)

__all__ = [
    "CategorizeResult",
    "ExportResult",
    "OperationResult",
    "SearchEntry",
    "SearchResult",
    "SummaryResult",
    "categorize_history",
    "export_history",
    "fetch_all_transactions",
    "search_history",
    "summarize_history",
]
