"""
Summary statistics over a filtered transaction set.

Flow attribution: receiver == account -> inflow; else signer == account ->
outflow and fee. The receiver check comes first, so a self-transfer counts
once, as inflow, and its fee is not counted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from near_ledger.core.units import MS_PER_DAY, to_display_amount
from near_ledger.indexer.models import Transaction
from near_ledger.ledger_logging import get_logger

logger = get_logger(__name__)

TOP_COUNTERPARTIES = 10


@dataclass
class CounterpartyStat:
    account: str
    count: int = 0
    volume: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "account": self.account,
            "count": self.count,
            "volume": to_display_amount(self.volume),
        }


@dataclass
class Summary:
    """Derived aggregate; amounts in yoctoNEAR, display strings via to_dict()."""

    total_transactions: int = 0
    total_inflow: int = 0
    total_outflow: int = 0
    total_fees: int = 0
    action_breakdown: dict[str, int] = field(default_factory=dict)
    top_counterparties: list[CounterpartyStat] = field(default_factory=list)
    avg_tx_per_day: float = 0

    @property
    def net_flow(self) -> int:
        return self.total_inflow - self.total_outflow

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_transactions": self.total_transactions,
            "total_inflow_near": to_display_amount(self.total_inflow),
            "total_outflow_near": to_display_amount(self.total_outflow),
            "total_fees_near": to_display_amount(self.total_fees),
            "net_flow_near": to_display_amount(self.net_flow),
            "action_breakdown": dict(self.action_breakdown),
            "top_counterparties": [c.to_dict() for c in self.top_counterparties],
            "avg_tx_per_day": self.avg_tx_per_day,
        }


def average_per_day(transactions: Sequence[Transaction]) -> float:
    """
    count / span-in-days between earliest and latest, rounded to 2 places.

    Fewer than 2 transactions, or a zero-length span, return the count itself.
    """
    count = len(transactions)
    if count < 2:
        return count
    times = [tx.timestamp_ms for tx in transactions]
    days = (max(times) - min(times)) / MS_PER_DAY
    return round(count / days, 2) if days > 0 else count


def summarize(
    transactions: Sequence[Transaction],
    account_id: str,
    top_n: int = TOP_COUNTERPARTIES,
) -> Summary:
    """Compute flows, fees, action histogram, top counterparties, and per-day rate."""
    inflow = 0
    outflow = 0
    fees = 0
    action_counts: dict[str, int] = {}
    counterparties: dict[str, CounterpartyStat] = {}

    for tx in transactions:
        if tx.receiver_id == account_id:
            inflow += tx.deposit
        elif tx.signer_id == account_id:
            outflow += tx.deposit
            fees += tx.fee

        # one increment per action, not per transaction
        for action in tx.actions:
            action_counts[action.kind] = action_counts.get(action.kind, 0) + 1

        other = tx.counterparty(account_id)
        stat = counterparties.get(other)
        if stat is None:
            stat = counterparties[other] = CounterpartyStat(account=other)
        stat.count += 1
        stat.volume += tx.deposit

    # sorted() is stable: ties keep first-encounter order
    ranked = sorted(counterparties.values(), key=lambda c: c.count, reverse=True)

    summary = Summary(
        total_transactions=len(transactions),
        total_inflow=inflow,
        total_outflow=outflow,
        total_fees=fees,
        action_breakdown=action_counts,
        top_counterparties=ranked[:top_n],
        avg_tx_per_day=average_per_day(transactions),
    )
    logger.debug(
        "summary_computed",
        account_id=account_id,
        total_transactions=summary.total_transactions,
        counterparties=len(counterparties),
    )
    return summary
