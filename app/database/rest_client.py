from typing import Any

import httpx

from app.database.exceptions import StorageError
from app.logging.logger import Log


class SupabaseRestClient:
    """Thin wrapper over the platform's PostgREST interface (/rest/v1)."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        timeout_seconds: int = 15,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._base_url = f"{base_url.rstrip('/')}/rest/v1"
        self._api_key = api_key
        self._client = http_client or httpx.Client(timeout=timeout_seconds)

    def close(self) -> None:
        self._client.close()

    def table_exists(self, table: str) -> bool:
        """Probe the table with a one-row select."""
        try:
            response = self._client.get(
                self._url(table), params={"limit": "1"}, headers=self._headers()
            )
        except httpx.HTTPError as exc:
            raise StorageError(f"Storage platform unreachable: {exc}") from exc
        if response.is_success:
            return True
        Log.warning(
            f"[rest] table {table!r} probe -> {response.status_code} {response.text[:200]!r}"
        )
        return False

    def select(
        self,
        table: str,
        *,
        params: dict[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        query = {"select": "*", **(params or {})}
        response = self._request("GET", table, params=query)
        data = response.json()
        return data if isinstance(data, list) else []

    def insert(
        self,
        table: str,
        rows: dict[str, Any] | list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Insert one or many rows and return their stored representation."""
        response = self._request(
            "POST",
            table,
            json=rows,
            headers=self._headers(prefer="return=representation"),
        )
        if not response.content:
            return []
        data = response.json()
        return data if isinstance(data, list) else [data]

    def delete(self, table: str, *, filters: dict[str, str]) -> None:
        """Delete rows matching PostgREST filters (e.g. {"id": "eq.<uuid>"})."""
        if not filters:
            raise ValueError("Refusing to delete without a filter")
        self._request("DELETE", table, params=filters)

    def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        Log.debug(f"[rest] {method} {table}", params=params)
        try:
            response = self._client.request(
                method,
                self._url(table),
                params=params,
                json=json,
                headers=headers or self._headers(),
            )
        except httpx.HTTPError as exc:
            raise StorageError(f"Storage platform unreachable: {exc}") from exc
        if not response.is_success:
            raise StorageError(
                f"{method} {table} failed: {response.status_code} {response.text[:200]}"
            )
        return response

    def _url(self, table: str) -> str:
        return f"{self._base_url}/{table}"

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers
