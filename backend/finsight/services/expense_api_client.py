"""
Expense API Client

Reads expense and budget snapshots from the remote ledger service.

Endpoints expected on the ledger:
  GET  /expenses?startDate=YYYY-MM-DD&endDate=YYYY-MM-DD
  GET  /budgets

Either endpoint may return a bare JSON list or an object wrapping the list
under "data".
"""

import logging
from typing import Any, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from finsight.config import settings
from finsight.exceptions import FetchFailedError
from finsight.models import Budget, ExpenseRecord

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _parse_items(payload: Any, model: Type[M], kind: str) -> List[M]:
    """Validate each payload item; invalid items are logged and dropped."""
    if isinstance(payload, dict):
        payload = payload.get("data", [])
    if not payload:
        return []
    if not isinstance(payload, list):
        raise FetchFailedError(f"Unexpected {kind} payload: {type(payload).__name__}")

    items = []
    for raw in payload:
        try:
            items.append(model.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Dropping invalid {kind} item {raw!r}: {e.error_count()} error(s)")
    return items


class ExpenseApiClient:
    """
    httpx-based client for the ledger API.

    Usable as an async context manager; otherwise call close() when done.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = (base_url or settings.api_base_url).rstrip("/")
        headers = {"Accept": "application/json"}
        token = settings.api_token if token is None else token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=timeout or settings.api_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def close(self):
        """Close the underlying httpx client to release connections."""
        await self._client.aclose()

    async def _get(self, path: str, **params) -> Any:
        try:
            resp = await self._client.get(path, params=params or None)
            resp.raise_for_status()
            return resp.json()
        except httpx.TimeoutException as e:
            logger.error(f"Ledger API timeout: GET {path}")
            raise FetchFailedError(f"Ledger API timed out on {path}", cause=e) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"Ledger API HTTP {status}: GET {path} - {e.response.text[:200]}")
            raise FetchFailedError(f"Ledger API returned {status} for {path}", cause=e) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Ledger API request failed: GET {path}: {e}")
            raise FetchFailedError(f"Ledger API unavailable: {e}", cause=e) from e

    async def fetch_expenses(self, start_date: str, end_date: str) -> List[ExpenseRecord]:
        """Expenses dated within [start_date, end_date] (ISO dates, inclusive)."""
        payload = await self._get("/expenses", startDate=start_date, endDate=end_date)
        return _parse_items(payload, ExpenseRecord, "expense")

    async def fetch_budgets(self) -> List[Budget]:
        payload = await self._get("/budgets")
        return _parse_items(payload, Budget, "budget")
