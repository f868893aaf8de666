"""
Transaction analytics engine.

Modules: classifier (category rules), filters (date/type/counterparty/amount),
summary (flow totals, histogram, counterparties, rate).
"""

from near_ledger.analytics.classifier import (
    Category,
    Subcategory,
    classify,
    classify_subcategory,
    classify_transaction,
)
from near_ledger.analytics.filters import FilterCriteria, apply_filters
from near_ledger.analytics.summary import CounterpartyStat, Summary, summarize

__all__ = [
    "Category",
    "CounterpartyStat",
    "FilterCriteria",
    "Subcategory",
    "Summary",
    "apply_filters",
    "classify",
    "classify_subcategory",
    "classify_transaction",
    "summarize",
]
