"""
Label/category store backed by a single JSON document.

Document layout: {version, transactions: {hash: label}, categories:
{category: {count, totalNear}}, customLabels: [...]}. Every operation is
load -> mutate -> save with no locking; last write wins. Labels are never
removed automatically and may outlive the transaction they describe.

Category counts are incremented by bulk operations (bulk_label, auto_label)
only; label_transaction and put leave them unchanged.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from near_ledger.analytics.filters import parse_date_bound
from near_ledger.config import get_settings
from near_ledger.core.exceptions import ParseError
from near_ledger.core.units import format_iso, to_display_amount, to_minor_units
from near_ledger.export.exporters import to_csv_content
from near_ledger.ledger_logging import get_logger

logger = get_logger(__name__)

DOCUMENT_VERSION = 1
DEFAULT_CATEGORY = "unknown"
STATS_CUSTOM_LABELS = 10

LABEL_CSV_HEADERS = [
    "hash",
    "category",
    "subcategory",
    "label",
    "amount",
    "token",
    "from",
    "to",
    "timestamp",
    "notes",
]


def _now_iso() -> str:
    return format_iso(datetime.now(timezone.utc))


class Label(BaseModel):
    """Persisted label for one transaction hash (no referential integrity)."""

    model_config = ConfigDict(populate_by_name=True)

    hash: str
    category: str = DEFAULT_CATEGORY
    subcategory: str | None = None
    label: str | None = None
    notes: str | None = None
    amount: str | None = None
    token: str | None = None
    from_account: str | None = Field(default=None, alias="from")
    to_account: str | None = Field(default=None, alias="to")
    timestamp: str | None = None
    auto_labeled: bool = Field(default=False, alias="autoLabeled")
    labeled_at: str = Field(default_factory=_now_iso, alias="labeledAt")

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class CategoryStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    count: int = 0
    total_near: str = Field(default="0", alias="totalNear")


class LabelsDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    version: int = DOCUMENT_VERSION
    transactions: dict[str, Label] = Field(default_factory=dict)
    categories: dict[str, CategoryStats] = Field(default_factory=dict)
    custom_labels: list[str] = Field(default_factory=list, alias="customLabels")


class LabelStore:
    """
    Keyed label records persisted at `path` (defaults to TX_LABELS_PATH).

    The analytics engine only needs get/put; the rest backs the labeling commands.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else get_settings().labels_path

    def load(self) -> LabelsDocument:
        """Read the document; a missing file yields empty defaults, a corrupt one ParseError."""
        if not self.path.is_file():
            return LabelsDocument()
        try:
            return LabelsDocument.model_validate_json(self.path.read_text(encoding="utf-8"))
        except ValidationError as e:
            logger.error("label_store_corrupt", path=str(self.path), errors=e.error_count())
            raise ParseError(f"Malformed label store {self.path}: {e.error_count()} validation error(s)") from e

    def save(self, doc: LabelsDocument) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            doc.model_dump_json(by_alias=True, exclude_none=True, indent=2),
            encoding="utf-8",
        )

    def get(self, tx_hash: str) -> Label | None:
        return self.load().transactions.get(tx_hash)

    def put(self, tx_hash: str, label: Label) -> None:
        """Full replace of the record for tx_hash."""
        doc = self.load()
        doc.transactions[tx_hash] = label.model_copy(update={"hash": tx_hash})
        self.save(doc)

    def label_transaction(
        self,
        tx_hash: str,
        label: str,
        category: str | None = None,
        notes: str | None = None,
    ) -> Label:
        """
        Interactive label: create or update in place. Notes and category are
        kept from the existing record unless given.
        """
        doc = self.load()
        entry = doc.transactions.get(tx_hash) or Label(hash=tx_hash, category=category or DEFAULT_CATEGORY)
        entry = entry.model_copy(update={
            "label": label,
            "notes": notes or entry.notes or "",
            "auto_labeled": False,
            "labeled_at": _now_iso(),
            "category": category or entry.category,
        })
        doc.transactions[tx_hash] = entry

        # entry exists for stats, count stays as is
        doc.categories.setdefault(entry.category, CategoryStats())
        if label and label not in doc.custom_labels:
            doc.custom_labels.append(label)

        self.save(doc)
        logger.info("label_set", tx_hash=tx_hash[:12], category=entry.category)
        return entry

    def bulk_label(
        self,
        category: str,
        hashes: str | Iterable[str],
        label: str = "",
        notes: str = "",
    ) -> int:
        """Replace every listed record with the same category/label/notes; returns count written."""
        if isinstance(hashes, str):
            hashes = hashes.split(",")
        doc = self.load()
        count = 0
        for raw in hashes:
            tx_hash = raw.strip()
            if not tx_hash:
                continue
            doc.transactions[tx_hash] = Label(
                hash=tx_hash,
                category=category,
                label=label,
                notes=notes,
                auto_labeled=False,
            )
            count += 1

        stats = doc.categories.setdefault(category, CategoryStats())
        stats.count += count
        self.save(doc)
        logger.info("labels_bulk_set", category=category, count=count)
        return count

    def bulk_put(
        self,
        hashes: str | Iterable[str],
        category: str,
        label: str = "",
        notes: str = "",
    ) -> int:
        """Same category/label/notes applied to every hash; see bulk_label."""
        return self.bulk_label(category, hashes, label=label, notes=notes)

    def auto_label(self, labels: Iterable[Label]) -> int:
        """
        Store classifier-produced labels for hashes with no record yet. Existing
        records (manual or auto) are left alone, so re-runs do not re-count.
        Increments category count and volume for every record written.
        """
        doc = self.load()
        written = 0
        for entry in labels:
            if entry.hash in doc.transactions:
                continue
            doc.transactions[entry.hash] = entry.model_copy(update={"auto_labeled": True})
            stats = doc.categories.setdefault(entry.category, CategoryStats())
            stats.count += 1
            if entry.amount:
                total = to_minor_units(stats.total_near) + to_minor_units(entry.amount)
                stats.total_near = to_display_amount(total)
            written += 1
        self.save(doc)
        logger.info("labels_auto_set", count=written)
        return written

    def stats(self) -> dict[str, Any]:
        doc = self.load()
        return {
            "total_labeled": len(doc.transactions),
            "categories": {
                name: {"count": s.count, "total_near": s.total_near}
                for name, s in doc.categories.items()
                if s.count > 0
            },
            "custom_labels": doc.custom_labels[:STATS_CUSTOM_LABELS],
            "more_custom_labels": len(doc.custom_labels) > STATS_CUSTOM_LABELS,
        }

    def select(
        self,
        category: str | None = None,
        start: Any = None,
        end: Any = None,
    ) -> list[Label]:
        """Records filtered by category and by timestamp (or labeledAt when unset)."""
        doc = self.load()
        entries = list(doc.transactions.values())
        if category:
            entries = [e for e in entries if e.category == category]

        start_dt = parse_date_bound(start)
        end_dt = parse_date_bound(end)
        if start_dt is None and end_dt is None:
            return entries

        out: list[Label] = []
        for entry in entries:
            when = parse_date_bound(entry.timestamp or entry.labeled_at)
            if when is None:
                continue
            if start_dt is not None and when < start_dt:
                continue
            if end_dt is not None and when > end_dt:
                continue
            out.append(entry)
        return out

    def export_labels(
        self,
        fmt: str = "json",
        category: str | None = None,
        start: Any = None,
        end: Any = None,
    ) -> tuple[str, int]:
        """Return (content, record count); csv or json (anything but csv is json)."""
        entries = self.select(category, start, end)
        if (fmt or "json").lower() == "csv":
            rows: list[list[Any]] = [LABEL_CSV_HEADERS]
            for entry in entries:
                record = entry.to_record()
                rows.append([record.get(h) or "" for h in LABEL_CSV_HEADERS])
            return to_csv_content(rows), len(entries)

        doc = self.load()
        payload = {
            "exportedAt": _now_iso(),
            "count": len(entries),
            "transactions": [e.to_record() for e in entries],
            "categories": {k: v.model_dump(by_alias=True) for k, v in doc.categories.items()},
        }
        return json.dumps(payload, indent=2, ensure_ascii=False), len(entries)
