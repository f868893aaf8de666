"""
NearBlocks indexer access: typed transaction models and the HTTP page source.
"""

from near_ledger.indexer.client import NearBlocksClient, TransactionSource
from near_ledger.indexer.models import (
    Action,
    Activity,
    FTTransaction,
    Transaction,
    TxnsPage,
    normalize_action_kind,
)

__all__ = [
    "Action",
    "Activity",
    "FTTransaction",
    "NearBlocksClient",
    "Transaction",
    "TransactionSource",
    "TxnsPage",
    "normalize_action_kind",
]
