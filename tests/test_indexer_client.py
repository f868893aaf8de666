"""
Tests for the NearBlocks client and indexer models. HTTP is served by
httpx.MockTransport; nothing leaves the process.
"""

from __future__ import annotations

import httpx
import pytest

from near_ledger.core.exceptions import ParseError, UpstreamFetchFailure
from near_ledger.history.service import search_history
from near_ledger.indexer.client import NearBlocksClient
from near_ledger.indexer.models import Action, Activity, FTTransaction, Transaction, normalize_action_kind

from conftest import BASE_TS, api_item

BASE_URL = "https://indexer.test/v1"


def _client(handler, **kwargs) -> NearBlocksClient:
    return NearBlocksClient(BASE_URL, api_key=kwargs.pop("api_key", ""), transport=httpx.MockTransport(handler), **kwargs)


def test_fetch_page_request_and_parse():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"cursor": "c2", "txns": [api_item()]})

    with _client(handler) as client:
        page = client.fetch_page("alice.near", page=2, per_page=10, order="asc")

    assert seen["path"] == "/v1/account/alice.near/txns"
    assert seen["params"] == {"page": "2", "per_page": "10", "order": "asc"}
    assert page.cursor == "c2"
    tx = page.transactions[0]
    assert tx.hash == "9xQ1hash"
    assert tx.timestamp == BASE_TS + 123_456_789
    assert tx.actions == (Action("FUNCTION_CALL", method="swap", deposit=1),)
    assert tx.fee == 242_800_000_000_000_000_000
    assert tx.block_height == 110_000_000
    assert tx.success is True


def test_per_page_capped_and_cursor_forwarded():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json={"txns": []})

    with _client(handler) as client:
        page = client.fetch_page("alice.near", per_page=100, cursor="abc")
    assert seen["per_page"] == "25"
    assert seen["cursor"] == "abc"
    assert page.transactions == [] and page.cursor is None


def test_invalid_order_rejected():
    with _client(lambda r: httpx.Response(200, json={})) as client:
        with pytest.raises(ValueError):
            client.fetch_page("alice.near", order="sideways")


def test_bad_status_raises_upstream_failure():
    with _client(lambda r: httpx.Response(503, json={"error": "busy"})) as client:
        with pytest.raises(UpstreamFetchFailure) as exc:
            client.fetch_page("alice.near")
    assert exc.value.status_code == 503
    assert exc.value.code == "upstream_fetch_failure"
    assert "503" in exc.value.message


def test_network_error_raises_upstream_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with _client(handler) as client:
        with pytest.raises(UpstreamFetchFailure) as exc:
            client.fetch_page("alice.near")
    assert exc.value.status_code is None


def test_api_key_sent_as_bearer():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"txns": []})

    with _client(handler, api_key="secret") as client:
        client.fetch_page("alice.near")
    assert seen["auth"] == "Bearer secret"


def test_get_transaction():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/txns/missing"):
            return httpx.Response(200, json={"txns": []})
        return httpx.Response(200, json={"txns": [api_item(transaction_hash="h42")]})

    with _client(handler) as client:
        assert client.get_transaction("h42").hash == "h42"
        assert client.get_transaction("missing") is None


def test_ft_transactions_and_activities():
    ft_item = {
        "event_index": "1700",
        "affected_account_id": "alice.near",
        "involved_account_id": "bob.near",
        "delta_amount": "-2500000",
        "cause": "TRANSFER",
        "transaction_hash": "fth",
        "block_timestamp": str(BASE_TS),
        "block": {"block_height": 5},
        "ft": {"contract": "usdt.tether-token.near", "name": "Tether USD", "symbol": "USDt", "decimals": 6},
    }
    activity = {
        "event_index": "99",
        "block_height": "7",
        "transaction_hash": "ah",
        "receipt_id": None,
        "affected_account_id": "alice.near",
        "involved_account_id": "bob.near",
        "direction": "inbound",
        "cause": "TRANSFER",
        "absolute_nonstaked_amount": "1000000000000000000000000",
        "block_timestamp": str(BASE_TS),
    }

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/ft-txns"):
            return httpx.Response(200, json={"cursor": "n", "txns": [ft_item]})
        return httpx.Response(200, json={"activities": [activity]})

    with _client(handler) as client:
        transfers, cursor = client.get_ft_transactions("alice.near")
        activities, next_cursor = client.get_activities("alice.near", cursor="x")

    assert cursor == "n"
    ft = transfers[0]
    assert ft.delta_amount == -2_500_000
    assert ft.token_symbol == "USDt" and ft.token_decimals == 6
    assert ft.display_amount == "-2.500000"
    assert activities[0].direction == "INBOUND"
    assert activities[0].absolute_nonstaked_amount == 10**24
    assert activities[0].block_height == 7
    assert next_cursor is None


def test_malformed_amount_in_payload_raises_parse_error():
    with pytest.raises(ParseError):
        Transaction.from_api_item(api_item(actions_agg={"deposit": "lots"}))


def test_malformed_records_raise_parse_error():
    item = api_item()
    del item["transaction_hash"]
    with pytest.raises(ParseError):
        Transaction.from_api_item(item)
    with pytest.raises(ParseError):
        Transaction.from_api_item(api_item(block={"block_height": "n/a"}))
    with pytest.raises(ParseError):
        Transaction.from_api_item("not-a-record")
    with pytest.raises(ParseError):
        FTTransaction.from_api_item({"block_timestamp": "1", "block": {"block_height": "x"}})
    with pytest.raises(ParseError):
        Activity.from_api_item({"block_timestamp": "1", "block_height": "1.5"})


def test_malformed_record_reported_as_failed_search():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"txns": [{"block_timestamp": "1", "block": {"block_height": "n/a"}}]})

    with _client(handler) as client:
        result = search_history(client, "alice.near")

    assert result.ok is False
    assert result.error_code == "parse_error"
    assert result.entries == []


def test_action_from_rpc_shape_and_kind_normalization():
    action = Action.from_api_item({"kind": "FunctionCall", "method_name": "ft_transfer"})
    assert action.kind == "FUNCTION_CALL"
    assert action.method == "ft_transfer"
    assert action.deposit is None
    assert normalize_action_kind("deployContract") == "DEPLOY_CONTRACT"
    assert normalize_action_kind("delete_key") == "DELETE_KEY"
    assert normalize_action_kind(None) == ""
