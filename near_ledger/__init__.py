"""
NEAR Ledger: transaction history analytics for NEAR accounts.

Pages through an account's transactions from the NearBlocks indexer, classifies
each one into a semantic category, filters by date/amount/counterparty/type,
and produces summaries or exports (CSV, JSON, Markdown). Labels are kept in a
local JSON store.
"""

__version__ = "0.1.0"
