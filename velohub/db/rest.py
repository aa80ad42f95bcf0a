import logging
from typing import Any

import httpx

from velohub.db.storage import Row, StorageResult

logger = logging.getLogger(__name__)


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return body["message"]
    return f"{resp.status_code} {resp.reason_phrase}".strip()


class RestStorage:
    """Storage over a hosted PostgREST endpoint (``<base_url>/rest/v1/<table>``)."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Prefer": "return=representation",
        }

    async def _request(
        self,
        method: str,
        table: str,
        params: dict[str, str] | None = None,
        json: Row | None = None,
    ) -> StorageResult:
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                resp = await client.request(
                    method, url, params=params, json=json, headers=self._headers()
                )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, table, exc)
            return StorageResult(error=str(exc) or type(exc).__name__)
        if resp.is_error:
            return StorageResult(error=_error_message(resp))
        if not resp.content:
            return StorageResult(data=[])
        try:
            return StorageResult(data=resp.json())
        except ValueError:
            logger.warning("%s %s returned a non-JSON body", method, table)
            return StorageResult(error=f"Unexpected non-JSON response from {table} ({resp.status_code})")

    async def select(self, table: str, **equals: Any) -> StorageResult:
        params = {"select": "*", **{k: f"eq.{v}" for k, v in equals.items()}}
        return await self._request("GET", table, params=params)

    async def insert(self, table: str, row: Row) -> StorageResult:
        result = await self._request("POST", table, json=row)
        if not result.ok:
            return result
        return _single(result, f"Insert into {table} returned no row")

    async def update(self, table: str, row_id: str, values: Row) -> StorageResult:
        result = await self._request("PATCH", table, params={"id": f"eq.{row_id}"}, json=values)
        if not result.ok:
            return result
        return _single(result, f"No row in {table} with id '{row_id}'")

    async def delete(self, table: str, row_id: str) -> StorageResult:
        result = await self._request("DELETE", table, params={"id": f"eq.{row_id}"})
        if not result.ok:
            return result
        if not result.data:
            return StorageResult(error=f"No row in {table} with id '{row_id}'")
        return StorageResult()

    async def ping(self) -> None:
        async with httpx.AsyncClient(transport=self._transport) as client:
            resp = await client.get(f"{self.base_url}/rest/v1/", headers=self._headers())
            resp.raise_for_status()


def _single(result: StorageResult, missing: str) -> StorageResult:
    rows = result.data if isinstance(result.data, list) else [result.data]
    if len(rows) != 1 or not rows[0]:
        return StorageResult(error=missing)
    return StorageResult(data=rows[0])
