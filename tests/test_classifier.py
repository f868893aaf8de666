"""
Tests for category / subcategory classification (analytics.classifier).
"""

from __future__ import annotations

import pytest

from near_ledger.analytics.classifier import (
    CONTRACT_PATTERNS,
    Category,
    Subcategory,
    classify,
    classify_subcategory,
    classify_transaction,
    transaction_subcategory,
)
from near_ledger.indexer.models import Action

from conftest import make_tx


def _call(method: str | None = None) -> Action:
    return Action("FunctionCall", method=method)


def test_deploy_beats_known_pattern():
    """DeployContract wins even when the receiver is a known defi contract."""
    actions = [Action("DeployContract"), _call("swap")]
    assert classify("v2.ref-finance.near", actions) == Category.CONTRACT_DEPLOY


def test_account_actions():
    for kind in ("CreateAccount", "DeleteAccount", "AddKey", "DeleteKey", "ADD_KEY"):
        assert classify("bob.near", [Action("Transfer"), Action(kind)]) == Category.ACCOUNT
    # account ops precede the staking pattern
    assert classify("x.poolv1.near", [Action("AddKey")]) == Category.ACCOUNT


def test_bridge_pattern_precedes_contract_call():
    assert classify("factory.bridge.near", [_call("deposit")]) == Category.BRIDGE
    assert classify_subcategory("deposit") == Subcategory.DEPOSIT


@pytest.mark.parametrize(
    "receiver,expected",
    [
        ("astro.poolv1.near", Category.STAKING),
        ("meta-pool.near", Category.STAKING),
        ("aurora", Category.DEFI),
        ("wrap.near", Category.DEFI),
        ("paras.id", Category.NFT),
        ("market.paras.near", Category.NFT),
        ("mintbase1.near", Category.NFT),
        ("mintbase.near", Category.NFT),
        ("core.wormhole.near", Category.BRIDGE),
        ("sputnik-dao.near", Category.GOVERNANCE),
        ("treasury.sputnikdao.near", Category.GOVERNANCE),
        ("voting.example.near", Category.GOVERNANCE),
    ],
)
def test_known_contract_patterns(receiver, expected):
    assert classify(receiver, [_call("anything")]) == expected


def test_pattern_matching_is_anchored():
    assert classify("mintbasex.near", [_call("nft_buy")]) == Category.CONTRACT_CALL
    assert classify("notwrap.near", [_call("ft_transfer")]) == Category.CONTRACT_CALL
    assert classify("aurora.near", [_call("ft_transfer")]) == Category.CONTRACT_CALL


def test_aurora_listed_twice_resolves_to_first_category():
    categories = [c for c, matchers in CONTRACT_PATTERNS if any(m.matches("aurora") for m in matchers)]
    assert categories == [Category.DEFI, Category.BRIDGE]
    assert classify("aurora", []) == Category.DEFI


def test_transfer_fallbacks():
    assert classify("bob.near", []) == Category.TRANSFER
    assert classify("bob.near", None) == Category.TRANSFER
    assert classify("bob.near", [Action("TRANSFER"), Action("Transfer")]) == Category.TRANSFER


def test_contract_call_and_unknown():
    assert classify("game.near", [Action("Transfer"), _call("play")]) == Category.CONTRACT_CALL
    assert classify("bob.near", [Action("Stake")]) == Category.UNKNOWN
    assert classify("bob.near", [Action("Transfer"), Action("Stake")]) == Category.UNKNOWN


def test_classify_is_deterministic_and_order_independent():
    a = [Action("Transfer"), _call("x")]
    b = list(reversed(a))
    results = {classify("game.near", a), classify("game.near", b), classify("game.near", a)}
    assert results == {Category.CONTRACT_CALL}


@pytest.mark.parametrize(
    "method,expected",
    [
        ("swap", Subcategory.SWAP),
        ("swap_and_deposit", Subcategory.SWAP),
        ("unstake_all", Subcategory.STAKING),
        ("deposit_and_stake", Subcategory.STAKING),
        ("storage_deposit", Subcategory.DEPOSIT),
        ("Withdraw", Subcategory.WITHDRAW),
        ("borrow", Subcategory.BORROW),
        ("repay", Subcategory.REPAY),
        ("nft_mint", Subcategory.MINT),
        ("burn_tokens", Subcategory.BURN),
        ("ft_transfer_call", Subcategory.TRANSFER),
        ("act_proposal_vote", Subcategory.VOTE),
        ("add_proposal", Subcategory.PROPOSAL),
        ("propose", Subcategory.PROPOSAL),
    ],
)
def test_subcategory_keywords(method, expected):
    assert classify_subcategory(method) == expected


def test_subcategory_none():
    assert classify_subcategory(None) is None
    assert classify_subcategory("") is None
    assert classify_subcategory("get_balance") is None


def test_transaction_helpers():
    tx = make_tx(
        signer="alice.near",
        receiver="factory.bridge.near",
        actions=[_call("get_info"), _call("deposit")],
    )
    assert classify_transaction(tx) == Category.BRIDGE
    assert transaction_subcategory(tx) == Subcategory.DEPOSIT
    assert transaction_subcategory(make_tx(actions=[Action("Transfer")])) is None
