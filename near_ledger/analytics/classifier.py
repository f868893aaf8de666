"""
Category classification for NEAR transactions.

Pure function of (receiver, actions); never cached on the transaction. Order
of checks matters: deploy, account management, known contract patterns,
plain transfer, generic contract call, unknown.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from near_ledger.indexer.models import (
    ACTION_ADD_KEY,
    ACTION_CREATE_ACCOUNT,
    ACTION_DELETE_ACCOUNT,
    ACTION_DELETE_KEY,
    ACTION_DEPLOY_CONTRACT,
    ACTION_FUNCTION_CALL,
    ACTION_TRANSFER,
    Action,
    Transaction,
)
from near_ledger.ledger_logging import get_logger

logger = get_logger(__name__)


class Category(str, Enum):
    TRANSFER = "transfer"
    STAKING = "staking"
    DEFI = "defi"
    NFT = "nft"
    BRIDGE = "bridge"
    GOVERNANCE = "governance"
    ACCOUNT = "account"
    CONTRACT_DEPLOY = "contract_deploy"
    CONTRACT_CALL = "contract_call"
    UNKNOWN = "unknown"


class Subcategory(str, Enum):
    SWAP = "swap"
    STAKING = "staking"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    BORROW = "borrow"
    REPAY = "repay"
    MINT = "mint"
    BURN = "burn"
    TRANSFER = "transfer"
    VOTE = "vote"
    PROPOSAL = "proposal"


@dataclass(frozen=True)
class AccountMatcher:
    """Matches a receiver account id: exact, suffix, prefix, or regex."""

    kind: str
    value: str

    def matches(self, account_id: str) -> bool:
        if self.kind == "exact":
            return account_id == self.value
        if self.kind == "suffix":
            return account_id.endswith(self.value)
        if self.kind == "prefix":
            return account_id.startswith(self.value)
        return re.fullmatch(self.value, account_id) is not None


def exact(account_id: str) -> AccountMatcher:
    return AccountMatcher("exact", account_id)


def suffix(domain: str) -> AccountMatcher:
    return AccountMatcher("suffix", domain)


def prefix(start: str) -> AccountMatcher:
    return AccountMatcher("prefix", start)


def regex(pattern: str) -> AccountMatcher:
    return AccountMatcher("regex", pattern)


# Checked category by category, patterns in list order; first hit wins.
# "aurora" appears under defi and bridge: defi wins.
CONTRACT_PATTERNS: list[tuple[Category, tuple[AccountMatcher, ...]]] = [
    (Category.STAKING, (
        suffix(".poolv1.near"),
        exact("meta-pool.near"),
        exact("astro-stakers.near"),
        exact("linear-protocol.near"),
    )),
    (Category.DEFI, (
        exact("ref-finance.near"),
        exact("v2.ref-finance.near"),
        exact("burrow.near"),
        exact("aurora"),
        exact("priceoracle.near"),
        exact("wrap.near"),
        exact("usn"),
        exact("token.sweat"),
    )),
    (Category.NFT, (
        exact("paras.id"),
        suffix(".paras.near"),
        regex(r"mintbase\d*\.near"),
        exact("apollo42.near"),
        exact("nft.nearapps.near"),
        exact("few-and-far.near"),
    )),
    (Category.BRIDGE, (
        exact("factory.bridge.near"),
        exact("aurora"),
        exact("core.wormhole.near"),
        exact("prover.bridge.near"),
    )),
    (Category.GOVERNANCE, (
        exact("sputnik-dao.near"),
        suffix(".sputnikdao.near"),
        exact("astro-dao.near"),
        prefix("voting."),
    )),
]

ACCOUNT_ACTIONS = frozenset({
    ACTION_CREATE_ACCOUNT,
    ACTION_DELETE_ACCOUNT,
    ACTION_ADD_KEY,
    ACTION_DELETE_KEY,
})

# (keywords, subcategory); first keyword contained in the method name wins
SUBCATEGORY_KEYWORDS: list[tuple[tuple[str, ...], Subcategory]] = [
    (("swap",), Subcategory.SWAP),
    (("stake", "unstake"), Subcategory.STAKING),
    (("deposit",), Subcategory.DEPOSIT),
    (("withdraw",), Subcategory.WITHDRAW),
    (("borrow",), Subcategory.BORROW),
    (("repay",), Subcategory.REPAY),
    (("mint",), Subcategory.MINT),
    (("burn",), Subcategory.BURN),
    (("transfer",), Subcategory.TRANSFER),
    (("vote",), Subcategory.VOTE),
    (("propose", "proposal"), Subcategory.PROPOSAL),
]


def match_contract_pattern(receiver_id: str) -> Category | None:
    for category, matchers in CONTRACT_PATTERNS:
        for matcher in matchers:
            if matcher.matches(receiver_id):
                return category
    return None


def classify(receiver_id: str, actions: Iterable[Action] | None = None) -> Category:
    """
    Map a receiver and its actions to a Category. Total: falls back to UNKNOWN.

    Whole action set is inspected; action order does not affect the result.
    """
    kinds = {a.kind for a in actions or ()}

    if ACTION_DEPLOY_CONTRACT in kinds:
        return Category.CONTRACT_DEPLOY
    if kinds & ACCOUNT_ACTIONS:
        return Category.ACCOUNT

    known = match_contract_pattern(receiver_id or "")
    if known is not None:
        return known

    if not kinds or kinds == {ACTION_TRANSFER}:
        return Category.TRANSFER
    if ACTION_FUNCTION_CALL in kinds:
        return Category.CONTRACT_CALL
    return Category.UNKNOWN


def classify_subcategory(method_name: str | None) -> Subcategory | None:
    """Keyword containment on the lower-cased method name; None if nothing matches."""
    if not method_name:
        return None
    method = method_name.lower()
    for keywords, subcategory in SUBCATEGORY_KEYWORDS:
        if any(k in method for k in keywords):
            return subcategory
    return None


def classify_transaction(tx: Transaction) -> Category:
    return classify(tx.receiver_id, tx.actions)


def transaction_subcategory(tx: Transaction) -> Subcategory | None:
    """Subcategory of the first function call whose method name matches a keyword."""
    for action in tx.actions:
        if action.kind != ACTION_FUNCTION_CALL:
            continue
        sub = classify_subcategory(action.method)
        if sub is not None:
            return sub
    return None
