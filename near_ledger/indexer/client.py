"""
NearBlocks indexer client: paginated transaction source over HTTP.

Responsibilities:
- Fetch one page of account transactions (and FT transfers / activities).
- Map non-success responses and network errors to UpstreamFetchFailure.
- No retries: a failed page aborts the caller's fetch loop.
"""

from __future__ import annotations

from typing import Any, Protocol

import httpx

from near_ledger.config import get_settings
from near_ledger.core.exceptions import UpstreamFetchFailure
from near_ledger.indexer.models import Activity, FTTransaction, Transaction, TxnsPage
from near_ledger.ledger_logging import get_logger

logger = get_logger(__name__)

MAX_PER_PAGE = 25
ORDERS = ("asc", "desc")


class TransactionSource(Protocol):
    """Anything that returns a typed page of account transactions."""

    def fetch_page(
        self,
        account_id: str,
        page: int = 1,
        per_page: int = MAX_PER_PAGE,
        order: str = "desc",
    ) -> TxnsPage: ...


class NearBlocksClient:
    """
    Synchronous NearBlocks API client.

    Pass a preconfigured httpx.Client (or a transport, e.g. httpx.MockTransport
    in tests) to control networking; otherwise one is built from settings.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        api_key: str | None = None,
        timeout_sec: float | None = None,
        client: httpx.Client | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.nearblocks_api_url).rstrip("/")
        headers = {"Accept": "application/json"}
        key = api_key if api_key is not None else settings.nearblocks_api_key
        if key:
            headers["Authorization"] = f"Bearer {key}"
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=timeout_sec if timeout_sec is not None else settings.request_timeout_sec,
            headers=headers,
            transport=transport,
        )

    def __enter__(self) -> "NearBlocksClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _get_json(self, path: str, params: dict[str, Any] | None, what: str) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.error("nearblocks_request_error", url=url, error=str(e))
            raise UpstreamFetchFailure(f"Failed to fetch {what}: {e}", url=url) from e
        if not response.is_success:
            logger.error("nearblocks_bad_status", url=url, status_code=response.status_code)
            raise UpstreamFetchFailure(
                f"Failed to fetch {what}: {response.reason_phrase}",
                status_code=response.status_code,
                url=url,
            )
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamFetchFailure(f"Failed to fetch {what}: invalid JSON", url=url) from e
        if not isinstance(data, dict):
            raise UpstreamFetchFailure(f"Failed to fetch {what}: unexpected payload", url=url)
        return data

    @staticmethod
    def _page_params(page: int, per_page: int, order: str, cursor: str | None) -> dict[str, Any]:
        if order not in ORDERS:
            raise ValueError(f"order must be one of {ORDERS}, got {order!r}")
        params: dict[str, Any] = {
            "page": max(1, page),
            "per_page": max(1, min(per_page, MAX_PER_PAGE)),
            "order": order,
        }
        if cursor:
            params["cursor"] = cursor
        return params

    def fetch_page(
        self,
        account_id: str,
        page: int = 1,
        per_page: int = MAX_PER_PAGE,
        order: str = "desc",
        cursor: str | None = None,
    ) -> TxnsPage:
        """GET /account/{id}/txns for one page."""
        params = self._page_params(page, per_page, order, cursor)
        data = self._get_json(f"/account/{account_id}/txns", params, "transactions")
        result = TxnsPage.from_api_response(data)
        logger.debug(
            "nearblocks_page_fetched",
            account_id=account_id,
            page=params["page"],
            count=len(result.transactions),
        )
        return result

    def get_transaction(self, tx_hash: str) -> Transaction | None:
        """GET /txns/{hash}; None when the indexer returns no record."""
        data = self._get_json(f"/txns/{tx_hash}", None, "transaction")
        txns = data.get("txns") or []
        return Transaction.from_api_item(txns[0]) if txns else None

    def get_ft_transactions(
        self,
        account_id: str,
        page: int = 1,
        per_page: int = MAX_PER_PAGE,
        order: str = "desc",
        cursor: str | None = None,
    ) -> tuple[list[FTTransaction], str | None]:
        """GET /account/{id}/ft-txns; returns (transfers, next cursor)."""
        params = self._page_params(page, per_page, order, cursor)
        data = self._get_json(f"/account/{account_id}/ft-txns", params, "FT transactions")
        return [FTTransaction.from_api_item(t) for t in data.get("txns") or []], data.get("cursor") or None

    def get_activities(
        self,
        account_id: str,
        cursor: str | None = None,
    ) -> tuple[list[Activity], str | None]:
        """GET /account/{id}/activities; returns (activities, next cursor)."""
        params = {"cursor": cursor} if cursor else None
        data = self._get_json(f"/account/{account_id}/activities", params, "activities")
        return [Activity.from_api_item(a) for a in data.get("activities") or []], data.get("cursor") or None
