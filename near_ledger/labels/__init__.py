"""
Local label store: per-transaction labels and category counts in one JSON document.
"""

from near_ledger.labels.store import CategoryStats, Label, LabelsDocument, LabelStore

__all__ = ["CategoryStats", "Label", "LabelStore", "LabelsDocument"]
