"""Notion REST API transport for database queries and page mutations"""

from typing import Any, Dict, List, Optional

import httpx

from notion_finance.config import settings
from notion_finance.domain.exceptions import (
    AuthenticationError,
    FinanceServiceError,
    InputValidationError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitedError,
    RequestTimeoutError,
    ServerError,
    StoreConnectionError,
)

PAGE_SIZE = 100

_STATUS_ERRORS = {
    400: InputValidationError,
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
}


def _retry_after(response: httpx.Response) -> Optional[float]:
    raw = response.headers.get("Retry-After")
    if raw is None:
        return None
    try:
        return max(float(raw), 0.0)
    except ValueError:
        return None


def error_from_response(response: httpx.Response) -> FinanceServiceError:
    """Classify a non-2xx store response into the error taxonomy"""
    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        body = {}

    status = response.status_code
    message = body.get("message") or f"Record store returned HTTP {status}"
    details = {"status": status, "store_code": body.get("code")}

    if status == 429:
        return RateLimitedError(message, retry_after=_retry_after(response), details=details)
    error_cls = _STATUS_ERRORS.get(status, ServerError)
    return error_cls(message, details=details)


class NotionTransport:
    """Thin client over the store's REST API.

    Each method issues exactly one HTTP call and raises a classified
    ``FinanceServiceError`` on failure. Retrying, throttling and caching are
    the caller's concern.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        version: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.notion_api_base).rstrip("/")
        self.timeout = timeout or settings.request_timeout_seconds
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {token if token is not None else settings.notion_token}",
                "Notion-Version": version or settings.notion_version,
                "Content-Type": "application/json",
            },
        )

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(f"Record store timeout after {self.timeout}s") from e
        except httpx.TransportError as e:
            raise StoreConnectionError(f"Record store unreachable: {e}") from e

        if response.is_error:
            raise error_from_response(response)

        try:
            return response.json()
        except ValueError as e:
            raise ServerError("Invalid JSON from record store") from e

    async def query_database(
        self,
        database_id: str,
        filter: Optional[Dict[str, Any]] = None,
        sorts: Optional[List[Dict[str, Any]]] = None,
        start_cursor: Optional[str] = None,
        page_size: int = PAGE_SIZE,
    ) -> Dict[str, Any]:
        """Fetch one page of query results"""
        body: Dict[str, Any] = {"page_size": page_size}
        if filter:
            body["filter"] = filter
        if sorts:
            body["sorts"] = sorts
        if start_cursor:
            body["start_cursor"] = start_cursor
        return await self._request("POST", f"/databases/{database_id}/query", json=body)

    async def create_page(self, database_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "POST", "/pages", json={"parent": {"database_id": database_id}, "properties": properties}
        )

    async def update_page(self, page_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PATCH", f"/pages/{page_id}", json={"properties": properties})

    async def retrieve_page(self, page_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/pages/{page_id}")

    async def retrieve_database(self, database_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/databases/{database_id}")

    async def aclose(self) -> None:
        await self._client.aclose()
