"""
Multi-format exporter.

All three encodings draw amount, fee and date strings from near_ledger.core.units,
so one transaction renders the same amount everywhere.
"""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Any, Callable, Sequence

from near_ledger.core.units import to_calendar_date, to_calendar_time, to_display_amount
from near_ledger.indexer.models import Transaction
from near_ledger.ledger_logging import get_logger

logger = get_logger(__name__)

CSV_HEADERS = [
    "tx_hash",
    "date",
    "from",
    "to",
    "action",
    "amount_near",
    "fee_near",
    "status",
    "block_height",
]

MARKDOWN_HEADER = (
    "| Tx Hash | Date | From | To | Action | Amount (Ⓝ) | Status |\n"
    "|---------|------|------|-----|--------|------------|--------|"
)
SHORT_HASH_LEN = 8


def status_text(tx: Transaction) -> str:
    return "success" if tx.success else "failed"


def to_csv_content(rows: Sequence[Sequence[Any]]) -> str:
    """
    Comma-separated rows joined by newline, no trailing newline. Values with a
    comma or quote are quoted, inner quotes doubled.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerows(rows)
    return buf.getvalue().removesuffix("\n")


def export_csv(transactions: Sequence[Transaction]) -> str:
    rows: list[list[Any]] = [CSV_HEADERS]
    for tx in transactions:
        rows.append([
            tx.hash,
            to_calendar_time(tx.timestamp),
            tx.signer_id,
            tx.receiver_id,
            ";".join(tx.action_kinds),
            to_display_amount(tx.deposit),
            to_display_amount(tx.fee),
            status_text(tx),
            tx.block_height if tx.block_height is not None else "",
        ])
    return to_csv_content(rows)


def _action_record(action: Any) -> dict[str, Any]:
    record: dict[str, Any] = {"type": action.kind, "method": action.method}
    # zero deposits are omitted, like absent ones
    if action.deposit:
        record["deposit"] = to_display_amount(action.deposit)
    return record


def export_json(transactions: Sequence[Transaction]) -> str:
    """Pretty-printed array of records; key order is fixed."""
    formatted = [
        {
            "tx_hash": tx.hash,
            "date": to_calendar_time(tx.timestamp),
            "from": tx.signer_id,
            "to": tx.receiver_id,
            "actions": [_action_record(a) for a in tx.actions],
            "amount_near": to_display_amount(tx.deposit),
            "fee_near": to_display_amount(tx.fee),
            "status": status_text(tx),
            "block_height": tx.block_height,
        }
        for tx in transactions
    ]
    return json.dumps(formatted, indent=2, ensure_ascii=False)


def export_markdown(transactions: Sequence[Transaction]) -> str:
    """Table with short hash, date only, and the first action."""
    lines = [MARKDOWN_HEADER]
    for tx in transactions:
        short_hash = tx.hash[:SHORT_HASH_LEN] + "..."
        first = tx.first_action
        action = first.kind if first is not None and first.kind else "-"
        status = "✅" if tx.success else "❌"
        lines.append(
            f"| {short_hash} | {to_calendar_date(tx.timestamp)} | {tx.signer_id} | "
            f"{tx.receiver_id} | {action} | {to_display_amount(tx.deposit)} | {status} |"
        )
    return "\n".join(lines)


# format name -> (renderer, file extension)
EXPORT_FORMATS: dict[str, tuple[Callable[[Sequence[Transaction]], str], str]] = {
    "csv": (export_csv, "csv"),
    "json": (export_json, "json"),
    "markdown": (export_markdown, "md"),
    "md": (export_markdown, "md"),
}
DEFAULT_FORMAT = "csv"


def resolve_format(fmt: str | None) -> str:
    """Lower-cased known format name; anything else falls back to csv."""
    name = (fmt or DEFAULT_FORMAT).strip().lower()
    if name not in EXPORT_FORMATS:
        logger.warning("export_format_unknown", requested=fmt, fallback=DEFAULT_FORMAT)
        return DEFAULT_FORMAT
    return "markdown" if name == "md" else name


def render(transactions: Sequence[Transaction], fmt: str | None = DEFAULT_FORMAT) -> tuple[str, str]:
    """Return (content, extension) for the requested format."""
    renderer, extension = EXPORT_FORMATS[resolve_format(fmt)]
    return renderer(transactions), extension


def write_export(path: str | Path, content: str) -> Path:
    """Write content to a caller-given path, creating parent directories."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(content, encoding="utf-8")
    logger.info("export_written", path=str(out), bytes=len(content.encode("utf-8")))
    return out
