"""
Pytest fixtures for NEAR Ledger tests. No network: transaction pages come from
an in-memory source and the label store lives in tmp_path.
"""

from __future__ import annotations

import itertools
from typing import Any

import pytest

from near_ledger.indexer.models import Action, Transaction, TxnsPage
from near_ledger.labels.store import LabelStore

YOCTO = 10**24
NS_PER_DAY = 86_400 * 10**9
# 2024-01-01T00:00:00Z in nanoseconds
BASE_TS = 1_704_067_200 * 10**9

_hash_counter = itertools.count(1)


def make_tx(
    signer: str = "bob.near",
    receiver: str = "alice.near",
    deposit: int = 0,
    fee: int = 0,
    actions: list[Action] | None = None,
    timestamp: int = BASE_TS,
    success: bool = True,
    block_height: int | None = 100,
    tx_hash: str | None = None,
) -> Transaction:
    return Transaction(
        hash=tx_hash or f"TxHash{next(_hash_counter):06d}abcdef",
        timestamp=timestamp,
        signer_id=signer,
        receiver_id=receiver,
        actions=tuple(actions if actions is not None else [Action("TRANSFER", deposit=deposit or None)]),
        deposit=deposit,
        success=success,
        fee=fee,
        block_height=block_height,
    )


def api_item(**overrides: Any) -> dict[str, Any]:
    """Indexer-shaped transaction JSON."""
    item: dict[str, Any] = {
        "transaction_hash": "9xQ1hash",
        "included_in_block_hash": "blockhash1",
        "block_timestamp": str(BASE_TS + 123_456_789),
        "signer_account_id": "alice.near",
        "receiver_account_id": "v2.ref-finance.near",
        "block": {"block_height": 110_000_000},
        "actions": [
            {"action": "FUNCTION_CALL", "method": "swap", "deposit": 1, "args": None},
        ],
        "actions_agg": {"deposit": 1},
        "outcomes": {"status": True},
        "outcomes_agg": {"transaction_fee": 242_800_000_000_000_000_000},
    }
    item.update(overrides)
    return item


class FakeSource:
    """In-memory TransactionSource; records every page request."""

    def __init__(self, transactions: list[Transaction], fail_on_page: int | None = None, error: Exception | None = None):
        self.transactions = transactions
        self.fail_on_page = fail_on_page
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def fetch_page(self, account_id: str, page: int = 1, per_page: int = 25, order: str = "desc") -> TxnsPage:
        self.calls.append({"account_id": account_id, "page": page, "per_page": per_page, "order": order})
        if self.fail_on_page is not None and page == self.fail_on_page:
            raise self.error
        start = (page - 1) * per_page
        return TxnsPage(transactions=self.transactions[start:start + per_page], cursor=None)

    def __enter__(self) -> "FakeSource":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        return None


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    """Keep settings deterministic and the label store out of the package dir."""
    for name in ("NEARBLOCKS_API_URL", "NEARBLOCKS_API_KEY", "HISTORY_SEARCH_LIMIT", "HISTORY_FETCH_LIMIT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TX_LABELS_PATH", str(tmp_path / "labels" / "tx-labels.json"))


@pytest.fixture
def label_store(tmp_path):
    return LabelStore(tmp_path / "store" / "tx-labels.json")


@pytest.fixture
def scenario_txs():
    """bob -> alice 1 NEAR; alice -> bob 2 NEAR with 0.00001 NEAR fee."""
    return [
        make_tx(signer="bob", receiver="alice", deposit=1 * YOCTO, tx_hash="tx-in"),
        make_tx(
            signer="alice",
            receiver="bob",
            deposit=2 * YOCTO,
            fee=10_000_000_000_000_000_000,
            timestamp=BASE_TS + NS_PER_DAY,
            tx_hash="tx-out",
        ),
    ]
