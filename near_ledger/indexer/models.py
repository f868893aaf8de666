"""
Data models for indexer output.

Transactions are immutable once fetched and identified solely by hash. Amounts
are kept as int yoctoNEAR and timestamps as int nanoseconds; conversion to
display values happens in near_ledger.core.units.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from near_ledger.core.exceptions import ParseError
from near_ledger.core.units import parse_minor_units, timestamp_to_ms, to_display_amount

ACTION_TRANSFER = "TRANSFER"
ACTION_FUNCTION_CALL = "FUNCTION_CALL"
ACTION_DEPLOY_CONTRACT = "DEPLOY_CONTRACT"
ACTION_CREATE_ACCOUNT = "CREATE_ACCOUNT"
ACTION_DELETE_ACCOUNT = "DELETE_ACCOUNT"
ACTION_ADD_KEY = "ADD_KEY"
ACTION_DELETE_KEY = "DELETE_KEY"
ACTION_STAKE = "STAKE"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def normalize_action_kind(kind: str | None) -> str:
    """
    Canonical upper-snake action kind.

    Accepts the indexer's FUNCTION_CALL form, the RPC's FunctionCall form, and
    any casing of either: "functionCall", "function_call", "Transfer" all map
    onto the same constant.
    """
    text = (kind or "").strip()
    if not text:
        return ""
    return _CAMEL_BOUNDARY.sub("_", text).upper()


def _optional_int(raw: Any, name: str) -> int | None:
    if raw is None or raw == "":
        return None
    text = str(raw).strip()
    if isinstance(raw, bool) or not text.isdigit():
        raise ParseError(f"Malformed {name}: {raw!r}")
    return int(text)


def _record(item: Any, kind: str) -> dict[str, Any]:
    if not isinstance(item, dict):
        raise ParseError(f"Malformed {kind} record: expected an object, got {type(item).__name__}")
    return item


def _ns_timestamp(raw: Any) -> int:
    # validates and keeps full nanosecond precision
    timestamp_to_ms(raw)
    return raw if isinstance(raw, int) else int(str(raw).strip())


@dataclass(frozen=True)
class Action:
    """One operation within a transaction."""

    kind: str
    method: str | None = None
    deposit: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", normalize_action_kind(self.kind))

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "Action":
        """Build from an indexer action ({action, method, deposit}) or RPC-style ({kind, method_name})."""
        item = _record(item, "action")
        deposit = item.get("deposit")
        return cls(
            kind=item.get("action") or item.get("kind") or "",
            method=item.get("method") or item.get("method_name") or None,
            deposit=parse_minor_units(deposit) if deposit is not None else None,
        )


@dataclass(frozen=True)
class Transaction:
    """
    Normalized account transaction from the indexer's /account/{id}/txns endpoint.

    deposit is the aggregate attached deposit (actions_agg.deposit); fee is
    outcomes_agg.transaction_fee. Both in yoctoNEAR.
    """

    hash: str
    timestamp: int
    signer_id: str
    receiver_id: str
    actions: tuple[Action, ...] = ()
    deposit: int = 0
    success: bool = True
    fee: int = 0
    block_height: int | None = None
    block_hash: str | None = None

    @property
    def timestamp_ms(self) -> int:
        return timestamp_to_ms(self.timestamp)

    @property
    def first_action(self) -> Action | None:
        return self.actions[0] if self.actions else None

    @property
    def action_kinds(self) -> list[str]:
        return [a.kind for a in self.actions]

    def counterparty(self, account_id: str) -> str:
        """The other side relative to account_id (receiver when account signed)."""
        return self.receiver_id if self.signer_id == account_id else self.signer_id

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "Transaction":
        """Build from one element of the indexer's txns array. Raises ParseError on a malformed record."""
        item = _record(item, "transaction")
        tx_hash = item.get("transaction_hash")
        if not tx_hash:
            raise ParseError("Transaction record without transaction_hash")
        block = _record(item.get("block") or {}, "block")
        return cls(
            hash=tx_hash,
            timestamp=_ns_timestamp(item.get("block_timestamp")),
            signer_id=item.get("signer_account_id") or "",
            receiver_id=item.get("receiver_account_id") or "",
            actions=tuple(Action.from_api_item(a) for a in item.get("actions") or []),
            deposit=parse_minor_units((item.get("actions_agg") or {}).get("deposit")),
            success=bool((item.get("outcomes") or {}).get("status")),
            fee=parse_minor_units((item.get("outcomes_agg") or {}).get("transaction_fee")),
            block_height=_optional_int(block.get("block_height"), "block height"),
            block_hash=item.get("included_in_block_hash"),
        )


@dataclass
class TxnsPage:
    """One page from the transaction source; cursor is None on the last page."""

    transactions: list[Transaction] = field(default_factory=list)
    cursor: str | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "TxnsPage":
        return cls(
            transactions=[Transaction.from_api_item(t) for t in data.get("txns") or []],
            cursor=data.get("cursor") or None,
        )


@dataclass(frozen=True)
class FTTransaction:
    """Fungible-token transfer event; delta_amount is signed and in the token's own decimals."""

    event_index: str
    affected_account_id: str
    involved_account_id: str | None
    delta_amount: int
    cause: str
    transaction_hash: str
    timestamp: int
    block_height: int | None
    token_contract: str
    token_name: str
    token_symbol: str
    token_decimals: int

    @property
    def display_amount(self) -> str:
        return to_display_amount(self.delta_amount, self.token_decimals)

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "FTTransaction":
        item = _record(item, "FT transaction")
        ft = _record(item.get("ft") or {}, "token")
        block = _record(item.get("block") or {}, "block")
        return cls(
            event_index=str(item.get("event_index") or ""),
            affected_account_id=item.get("affected_account_id") or "",
            involved_account_id=item.get("involved_account_id"),
            delta_amount=parse_minor_units(item.get("delta_amount")),
            cause=item.get("cause") or "",
            transaction_hash=item.get("transaction_hash") or "",
            timestamp=_ns_timestamp(item.get("block_timestamp")),
            block_height=_optional_int(block.get("block_height"), "block height"),
            token_contract=ft.get("contract") or "",
            token_name=ft.get("name") or "",
            token_symbol=ft.get("symbol") or "",
            token_decimals=_optional_int(ft.get("decimals"), "token decimals") or 0,
        )


@dataclass(frozen=True)
class Activity:
    """Balance-changing activity (INBOUND / OUTBOUND) for an account."""

    event_index: str
    block_height: int | None
    transaction_hash: str | None
    receipt_id: str | None
    affected_account_id: str
    involved_account_id: str | None
    direction: str
    cause: str
    absolute_nonstaked_amount: int
    timestamp: int

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "Activity":
        item = _record(item, "activity")
        return cls(
            event_index=str(item.get("event_index") or ""),
            block_height=_optional_int(item.get("block_height"), "block height"),
            transaction_hash=item.get("transaction_hash"),
            receipt_id=item.get("receipt_id"),
            affected_account_id=item.get("affected_account_id") or "",
            involved_account_id=item.get("involved_account_id"),
            direction=(item.get("direction") or "").upper(),
            cause=item.get("cause") or "",
            absolute_nonstaked_amount=parse_minor_units(item.get("absolute_nonstaked_amount")),
            timestamp=_ns_timestamp(item.get("block_timestamp")),
        )
