#!/usr/bin/env python3
"""
NEAR Ledger command line.

Usage:
  near-ledger search <account> [--from 7d] [--to 2024-06-01] [--type transfer,function_call]
                               [--counterparty bob.near] [--min-amount 1.5] [--limit 25]
  near-ledger export <account> [--format csv|json|markdown] [--output path] [filters]
  near-ledger summary <account> [--from 30d] [--to ...]
  near-ledger categorize <account> [--save-labels] [filters]
  near-ledger label <tx_hash> <label> [--category c] [--notes n]
  near-ledger bulk-label --category c --hashes h1,h2 [--label l] [--notes n]
  near-ledger label-stats
  near-ledger label-export [--format json|csv] [--category c] [--from d] [--to d] [--output path]
"""

from __future__ import annotations

import argparse
import sys
import time
from typing import Sequence

from near_ledger.analytics.filters import FilterCriteria
from near_ledger.core.exceptions import LedgerError
from near_ledger.core.units import to_calendar_time, to_display_amount
from near_ledger.export.exporters import write_export
from near_ledger.history.service import (
    SEARCH_DISPLAY_LIMIT,
    OperationResult,
    categorize_history,
    export_history,
    search_history,
    summarize_history,
)
from near_ledger.indexer.client import NearBlocksClient
from near_ledger.labels.store import LabelStore

TOP_COUNTERPARTIES_SHOWN = 5


def _add_filter_args(p: argparse.ArgumentParser, full: bool = True) -> None:
    p.add_argument("--from", dest="from_date", default=None, help="Start: ISO date or relative (7d, 12h, 1m)")
    p.add_argument("--to", dest="to_date", default=None, help="End: ISO date or relative")
    p.add_argument("--strict-dates", action="store_true", help="Fail on unparseable dates instead of ignoring them")
    if full:
        p.add_argument("--type", dest="action_types", default=None, help="Comma-separated action kinds")
        p.add_argument("--counterparty", default=None)
        p.add_argument("--min-amount", dest="min_amount", default=None, help="Minimum deposit in NEAR")


def _criteria(args: argparse.Namespace) -> FilterCriteria:
    return FilterCriteria(
        from_date=args.from_date,
        to_date=args.to_date,
        action_types=getattr(args, "action_types", None),
        counterparty=getattr(args, "counterparty", None),
        min_amount=getattr(args, "min_amount", None),
        strict_dates=args.strict_dates,
    )


def _fail(result: OperationResult) -> int:
    print(f"Error: {result.error}", file=sys.stderr)
    return 1


def _cmd_search(args: argparse.Namespace, client: NearBlocksClient) -> int:
    result = search_history(client, args.account, _criteria(args), limit=args.limit)
    if not result.ok:
        return _fail(result)
    if not result.entries:
        print(f"No transactions found for {result.account_id} matching your criteria.")
        return 0
    header = f"Found {len(result.entries)} transactions for {result.account_id}"
    if result.period_start:
        header += f" since {result.period_start.date().isoformat()}"
    print(header)
    for entry in result.entries[:SEARCH_DISPLAY_LIMIT]:
        tx = entry.transaction
        date, clock = to_calendar_time(tx.timestamp).split("T")
        first = tx.first_action
        arrow = "->" if entry.direction == "out" else "<-"
        line = (
            f"{'ok' if tx.success else 'FAILED'} {date} {clock[:5]} | "
            f"{first.kind if first else 'Unknown'} | {entry.category.value} | {arrow} {entry.counterparty}"
        )
        if tx.deposit > 0:
            line += f" | {to_display_amount(tx.deposit)} NEAR"
        print(line)
        print(f"   {tx.hash[:12]}...")
    if result.has_more:
        print(f"...and {len(result.entries) - SEARCH_DISPLAY_LIMIT} more. Use export for full data.")
    return 0


def _cmd_export(args: argparse.Namespace, client: NearBlocksClient) -> int:
    result = export_history(client, args.account, args.format, _criteria(args), output=args.output)
    if not result.ok:
        return _fail(result)
    if not result.count:
        print(f"No transactions found for {result.account_id} to export.")
        return 0
    if result.output_path:
        print(f"Exported {result.count} transactions to {result.output_path}")
    else:
        print(result.content)
    return 0


def _cmd_summary(args: argparse.Namespace, client: NearBlocksClient) -> int:
    result = summarize_history(client, args.account, _criteria(args))
    if not result.ok:
        return _fail(result)
    if result.summary is None:
        print(f"No transactions found for {result.account_id} in the specified period.")
        return 0
    data = result.summary.to_dict()
    print(f"Transaction summary for {result.account_id}")
    if result.period_start:
        end = result.period_end.date().isoformat() if result.period_end else "now"
        print(f"Period: {result.period_start.date().isoformat()} to {end}")
    print(f"Total transactions: {data['total_transactions']}")
    print(f"Avg/day: {data['avg_tx_per_day']}")
    print(f"Inflow: +{data['total_inflow_near']} NEAR")
    print(f"Outflow: -{data['total_outflow_near']} NEAR")
    print(f"Net: {data['net_flow_near']} NEAR")
    print(f"Fees paid: {data['total_fees_near']} NEAR")
    print("Actions:")
    for action, count in sorted(data["action_breakdown"].items(), key=lambda kv: kv[1], reverse=True):
        pct = count / data["total_transactions"] * 100
        print(f"  {action}: {count} ({pct:.1f}%)")
    if data["top_counterparties"]:
        print("Top counterparties:")
        for cp in data["top_counterparties"][:TOP_COUNTERPARTIES_SHOWN]:
            print(f"  {cp['account']}: {cp['count']} txns ({cp['volume']} NEAR)")
    return 0


def _cmd_categorize(args: argparse.Namespace, client: NearBlocksClient) -> int:
    store = LabelStore() if args.save_labels else None
    result = categorize_history(client, args.account, _criteria(args), store=store)
    if not result.ok:
        return _fail(result)
    print(f"Category summary for {result.account_id}")
    for bucket in result.breakdown:
        row = bucket.to_dict()
        print(f"  {row['category']:<16} {row['count']:>4} txs ({row['volume_near']} NEAR)")
    if store is not None:
        print(f"Auto-labeled {result.labeled} transactions")
    return 0


def _cmd_label(args: argparse.Namespace) -> int:
    entry = LabelStore().label_transaction(args.tx_hash, args.label, category=args.category, notes=args.notes)
    print(f"Labeled transaction: {args.tx_hash[:12]}...")
    print(f"   Label: {entry.label}")
    print(f"   Category: {entry.category}")
    if entry.notes:
        print(f"   Notes: {entry.notes}")
    return 0


def _cmd_bulk_label(args: argparse.Namespace) -> int:
    count = LabelStore().bulk_label(args.category, args.hashes, label=args.label, notes=args.notes)
    print(f'Bulk labeled {count} transactions as "{args.category}"')
    return 0


def _cmd_label_stats(args: argparse.Namespace) -> int:
    stats = LabelStore().stats()
    print(f"Total labeled: {stats['total_labeled']}")
    for name, data in stats["categories"].items():
        print(f"  {name}: {data['count']} ({data['total_near']} NEAR)")
    if stats["custom_labels"]:
        more = "..." if stats["more_custom_labels"] else ""
        print(f"Custom labels: {', '.join(stats['custom_labels'])}{more}")
    return 0


def _cmd_label_export(args: argparse.Namespace) -> int:
    fmt = args.format.lower()
    content, count = LabelStore().export_labels(fmt, category=args.category, start=args.from_date, end=args.to_date)
    if count == 0:
        print("No transactions to export")
        return 0
    output = args.output or f"tx-export-{int(time.time() * 1000)}.{'csv' if fmt == 'csv' else 'json'}"
    write_export(output, content)
    print(f"Exported {count} transactions to {output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="near-ledger", description="NEAR transaction history and labels")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("search", help="Search transactions by criteria")
    p.add_argument("account")
    p.add_argument("--limit", type=int, default=None)
    _add_filter_args(p)

    p = sub.add_parser("export", help="Export transactions (csv, json, markdown)")
    p.add_argument("account")
    p.add_argument("--format", default="csv")
    p.add_argument("--output", default=None)
    _add_filter_args(p, full=False)
    p.add_argument("--type", dest="action_types", default=None)

    p = sub.add_parser("summary", help="Flow totals, fees, actions, counterparties")
    p.add_argument("account")
    _add_filter_args(p, full=False)

    p = sub.add_parser("categorize", help="Category breakdown of recent transactions")
    p.add_argument("account")
    p.add_argument("--save-labels", action="store_true", help="Store auto labels for unlabeled hashes")
    _add_filter_args(p)

    p = sub.add_parser("label", help="Label a single transaction")
    p.add_argument("tx_hash")
    p.add_argument("label")
    p.add_argument("--category", default=None)
    p.add_argument("--notes", default=None)

    p = sub.add_parser("bulk-label", help="Label multiple transactions")
    p.add_argument("--category", required=True)
    p.add_argument("--hashes", required=True, help="Comma-separated hashes")
    p.add_argument("--label", default="")
    p.add_argument("--notes", default="")

    sub.add_parser("label-stats", help="Show labeling statistics")

    p = sub.add_parser("label-export", help="Export labeled transactions")
    p.add_argument("--format", default="json")
    p.add_argument("--category", default=None)
    p.add_argument("--from", dest="from_date", default=None)
    p.add_argument("--to", dest="to_date", default=None)
    p.add_argument("--output", default=None)
    return parser


HISTORY_COMMANDS = {
    "search": _cmd_search,
    "export": _cmd_export,
    "summary": _cmd_summary,
    "categorize": _cmd_categorize,
}
LABEL_COMMANDS = {
    "label": _cmd_label,
    "bulk-label": _cmd_bulk_label,
    "label-stats": _cmd_label_stats,
    "label-export": _cmd_label_export,
}


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command in LABEL_COMMANDS:
        try:
            return LABEL_COMMANDS[args.command](args)
        except LedgerError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1
    with NearBlocksClient() as client:
        return HISTORY_COMMANDS[args.command](args, client)


if __name__ == "__main__":
    raise SystemExit(main())
