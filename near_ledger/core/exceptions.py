"""
Application-level exceptions.

Engine functions raise these; history operations catch LedgerError and report
it as a failed OperationResult with the error code.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base error with a stable code for results and logs."""

    code = "ledger_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MissingRequiredParameter(LedgerError):
    code = "missing_parameter"

    def __init__(self, parameter: str) -> None:
        super().__init__(f"{parameter} parameter is required")
        self.parameter = parameter


class UpstreamFetchFailure(LedgerError):
    """Non-success response or network failure from the transaction source."""

    code = "upstream_fetch_failure"

    def __init__(self, message: str, status_code: int | None = None, url: str | None = None) -> None:
        if status_code is not None:
            message = f"{message} (status {status_code})"
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class ParseError(LedgerError, ValueError):
    """Malformed numeric amount or timestamp."""

    code = "parse_error"


class InvalidFilter(LedgerError, ValueError):
    """Unparseable filter input; only raised when strict parsing is requested."""

    code = "invalid_filter"
