"""
Structured logging for NEAR Ledger.

JSON logs with timestamp, account_id, event_type. Use get_logger() in all modules.
"""

from near_ledger.ledger_logging.logger import bind_account, get_logger

__all__ = ["bind_account", "get_logger"]
