"""
History operations over a paginated transaction source.

Responsibilities:
- Fetch pages sequentially until the limit is reached or a short page ends the data.
- Run the filter pipeline, then classify / summarize / export the result.
- Report failures as OperationResult(ok=False): a missing account id never
  reaches the source; an upstream failure aborts the whole fetch (no partial
  results, no retries).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, TypeVar

from near_ledger.analytics.classifier import (
    Category,
    Subcategory,
    classify_transaction,
    transaction_subcategory,
)
from near_ledger.analytics.filters import FilterCriteria, apply_filters
from near_ledger.analytics.summary import Summary, summarize
from near_ledger.config import get_settings
from near_ledger.core.exceptions import LedgerError, MissingRequiredParameter
from near_ledger.core.units import to_calendar_time, to_display_amount
from near_ledger.export.exporters import render, resolve_format, write_export
from near_ledger.indexer.client import MAX_PER_PAGE, TransactionSource
from near_ledger.indexer.models import Transaction
from near_ledger.labels.store import Label, LabelStore
from near_ledger.ledger_logging import bind_account, get_logger

logger = get_logger(__name__)

MAX_SEARCH_FETCH = 100
SEARCH_DISPLAY_LIMIT = 25
NATIVE_TOKEN = "NEAR"


@dataclass
class OperationResult:
    ok: bool = True
    account_id: str | None = None
    error: str | None = None
    error_code: str | None = None
    status_code: int | None = None


@dataclass
class SearchEntry:
    """One search hit with its classification and direction relative to the account."""

    transaction: Transaction
    category: Category
    subcategory: Subcategory | None
    direction: str
    counterparty: str


@dataclass
class SearchResult(OperationResult):
    entries: list[SearchEntry] = field(default_factory=list)
    period_start: datetime | None = None
    period_end: datetime | None = None

    @property
    def has_more(self) -> bool:
        return len(self.entries) > SEARCH_DISPLAY_LIMIT


@dataclass
class ExportResult(OperationResult):
    format: str = "csv"
    extension: str = "csv"
    count: int = 0
    content: str | None = None
    output_path: Path | None = None


@dataclass
class SummaryResult(OperationResult):
    summary: Summary | None = None
    period_start: datetime | None = None
    period_end: datetime | None = None


@dataclass
class CategoryBreakdown:
    category: Category
    count: int = 0
    volume: int = 0

    def to_dict(self) -> dict[str, object]:
        return {
            "category": self.category.value,
            "count": self.count,
            "volume_near": to_display_amount(self.volume),
        }


@dataclass
class CategorizeResult(OperationResult):
    breakdown: list[CategoryBreakdown] = field(default_factory=list)
    classified: list[tuple[Transaction, Category, Subcategory | None]] = field(default_factory=list)
    labeled: int = 0


R = TypeVar("R", bound=OperationResult)


def fetch_all_transactions(
    source: TransactionSource,
    account_id: str,
    limit: int = 100,
    order: str = "desc",
) -> list[Transaction]:
    """
    Issue sequential page requests until `limit` transactions are collected or a
    page returns fewer than requested. Any page failure propagates.
    """
    if limit <= 0:
        return []
    per_page = min(limit, MAX_PER_PAGE)
    collected: list[Transaction] = []
    page = 1
    while len(collected) < limit:
        result = source.fetch_page(account_id, page=page, per_page=per_page, order=order)
        if not result.transactions:
            break
        collected.extend(result.transactions)
        logger.debug(
            "history_fetch_page",
            account_id=account_id,
            page=page,
            count=len(result.transactions),
            total=len(collected),
        )
        if len(result.transactions) < per_page:
            break
        page += 1
    return collected[:limit]


def _run(operation: str, account_id: str | None, result_cls: type[R], body: Callable[[str], R]) -> R:
    """Validate account id, run body, convert LedgerError into a failed result."""
    account = (account_id or "").strip()
    try:
        if not account:
            raise MissingRequiredParameter("account")
        log = bind_account(account)
        log.info(f"{operation}_start")
        result = body(account)
        log.info(f"{operation}_done")
        return result
    except LedgerError as e:
        logger.error(f"{operation}_failed", account_id=account, error=e.message, error_code=e.code)
        return result_cls(
            ok=False,
            account_id=account or None,
            error=e.message,
            error_code=e.code,
            status_code=getattr(e, "status_code", None),
        )


def _direction(tx: Transaction, account_id: str) -> str:
    return "out" if tx.signer_id == account_id else "in"


def search_history(
    source: TransactionSource,
    account_id: str | None,
    criteria: FilterCriteria | None = None,
    limit: int | None = None,
    now: datetime | None = None,
) -> SearchResult:
    """Fetch up to min(limit, 100), filter, and annotate each hit with its category."""
    wanted = limit if limit is not None else get_settings().search_limit

    def body(account: str) -> SearchResult:
        transactions = fetch_all_transactions(source, account, min(wanted, MAX_SEARCH_FETCH))
        transactions = apply_filters(transactions, criteria, now=now)
        start, end = criteria.date_bounds(now) if criteria else (None, None)
        entries = [
            SearchEntry(
                transaction=tx,
                category=classify_transaction(tx),
                subcategory=transaction_subcategory(tx),
                direction=_direction(tx, account),
                counterparty=tx.counterparty(account),
            )
            for tx in transactions
        ]
        return SearchResult(account_id=account, entries=entries, period_start=start, period_end=end)

    return _run("history_search", account_id, SearchResult, body)


def export_history(
    source: TransactionSource,
    account_id: str | None,
    fmt: str = "csv",
    criteria: FilterCriteria | None = None,
    output: str | Path | None = None,
    now: datetime | None = None,
) -> ExportResult:
    """Render the filtered set as csv/json/markdown; write it when output is given."""
    name = resolve_format(fmt)

    def body(account: str) -> ExportResult:
        transactions = fetch_all_transactions(source, account, get_settings().fetch_limit)
        transactions = apply_filters(transactions, criteria, now=now)
        if not transactions:
            return ExportResult(account_id=account, format=name, extension="", count=0)
        content, extension = render(transactions, name)
        path = write_export(output, content) if output else None
        return ExportResult(
            account_id=account,
            format=name,
            extension=extension,
            count=len(transactions),
            content=content,
            output_path=path,
        )

    return _run("history_export", account_id, ExportResult, body)


def summarize_history(
    source: TransactionSource,
    account_id: str | None,
    criteria: FilterCriteria | None = None,
    now: datetime | None = None,
) -> SummaryResult:
    """Summary over the filtered set; summary is None when nothing matched."""

    def body(account: str) -> SummaryResult:
        transactions = fetch_all_transactions(source, account, get_settings().fetch_limit)
        transactions = apply_filters(transactions, criteria, now=now)
        start, end = criteria.date_bounds(now) if criteria else (None, None)
        summary = summarize(transactions, account) if transactions else None
        return SummaryResult(account_id=account, summary=summary, period_start=start, period_end=end)

    return _run("history_summary", account_id, SummaryResult, body)


def _auto_label(tx: Transaction, category: Category, subcategory: Subcategory | None) -> Label:
    return Label(
        hash=tx.hash,
        category=category.value,
        subcategory=subcategory.value if subcategory else None,
        amount=to_display_amount(tx.deposit),
        token=NATIVE_TOKEN,
        from_account=tx.signer_id,
        to_account=tx.receiver_id,
        timestamp=to_calendar_time(tx.timestamp),
        auto_labeled=True,
    )


def categorize_history(
    source: TransactionSource,
    account_id: str | None,
    criteria: FilterCriteria | None = None,
    store: LabelStore | None = None,
    now: datetime | None = None,
) -> CategorizeResult:
    """
    Classify every fetched transaction; per-category count and deposit volume in
    first-seen order. With a store, unlabeled hashes get auto labels.
    """

    def body(account: str) -> CategorizeResult:
        transactions = fetch_all_transactions(source, account, get_settings().fetch_limit)
        transactions = apply_filters(transactions, criteria, now=now)
        breakdown: dict[Category, CategoryBreakdown] = {}
        classified = []
        for tx in transactions:
            category = classify_transaction(tx)
            subcategory = transaction_subcategory(tx)
            classified.append((tx, category, subcategory))
            bucket = breakdown.setdefault(category, CategoryBreakdown(category=category))
            bucket.count += 1
            bucket.volume += tx.deposit

        labeled = 0
        if store is not None and classified:
            labeled = store.auto_label(_auto_label(tx, c, s) for tx, c, s in classified)
        return CategorizeResult(
            account_id=account,
            breakdown=list(breakdown.values()),
            classified=classified,
            labeled=labeled,
        )

    return _run("history_categorize", account_id, CategorizeResult, body)
