"""Thin async PostgREST client for Supabase tables."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from utils.exceptions import ConfigurationError, DuplicateRecordError, StoreError


logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class SupabaseRestClient:
    """Service-role REST access to ``<url>/rest/v1``; errors become StoreError."""

    def __init__(
        self,
        url: str,
        service_key: str,
        *,
        timeout: float = 20.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        base = str(url or "").rstrip("/")
        if not base or not service_key:
            raise ConfigurationError("Supabase URL and service key are required")
        self._client = client or httpx.AsyncClient(
            base_url=f"{base}/rest/v1",
            timeout=httpx.Timeout(timeout),
        )
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
        }

    async def select(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        response = await self._request("GET", f"/{table}", params=params)
        payload = response.json()
        return payload if isinstance(payload, list) else []

    async def insert(self, table: str, rows: Any, *, returning: bool = True) -> List[Dict[str, Any]]:
        headers = {"Prefer": "return=representation" if returning else "return=minimal"}
        response = await self._request("POST", f"/{table}", json=rows, headers=headers)
        if not returning or not response.content:
            return []
        payload = response.json()
        return payload if isinstance(payload, list) else [payload]

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = dict(self._headers)
        headers.update(kwargs.pop("headers", None) or {})
        logger.debug(f"supabase {method} {path}")
        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise StoreError(f"Supabase request failed: {exc}", code=None, path=path) from exc

        if response.status_code >= 400:
            raise self._error(response, path)
        return response

    @staticmethod
    def _error(response: httpx.Response, path: str) -> StoreError:
        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text}
        if not isinstance(body, dict):
            body = {"message": str(body)}

        code = str(body.get("code") or "").strip() or None
        message = str(body.get("message") or body.get("error") or f"HTTP {response.status_code}")
        details = {"path": path, "status": response.status_code, "hint": body.get("hint"), "detail": body.get("details")}
        if code == UNIQUE_VIOLATION:
            return DuplicateRecordError(message, code=code, **details)
        return StoreError(message, code=code, **details)
