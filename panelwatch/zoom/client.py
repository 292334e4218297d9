"""Zoom admin REST client for webinars and their panelists."""

from __future__ import annotations

import time
from typing import Any

import httpx

from panelwatch.config import ZoomConfig
from panelwatch.utils.logging import get_logger

log = get_logger(__name__)

# Refresh OAuth tokens a little before Zoom expires them
_TOKEN_EXPIRY_MARGIN = 60


class ZoomAPIError(Exception):
    def __init__(self, message: str, status_code: int | None = None, path: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.path = path


class ZoomAuthError(ZoomAPIError):
    pass


class ZoomAdminClient:
    """Thin async wrapper over the Zoom v2 API.

    Authenticates with a static ``access_token`` when one is configured,
    otherwise with Server-to-Server OAuth (``account_credentials`` grant).
    Errors are raised as :class:`ZoomAPIError`; nothing is retried.
    """

    def __init__(
        self,
        config: ZoomConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url.rstrip("/"),
            timeout=config.timeout,
            transport=transport,
        )
        self._token: str = config.access_token
        self._token_expires_at: float | None = None

    async def close(self) -> None:
        await self._client.aclose()

    async def list_webinars(self, next_page_token: str | None = None) -> dict[str, Any]:
        """One page of the user's webinars: ``{"webinars": [...], "next_page_token": ...}``."""
        params: dict[str, Any] = {"page_size": self._config.page_size}
        if next_page_token:
            params["next_page_token"] = next_page_token
        return await self._get(f"/users/{self._config.user_id}/webinars", params=params)

    async def list_webinar_panelists(self, webinar_id: str) -> dict[str, Any]:
        """All panelists of a webinar: ``{"panelists": [...], "total_records": n}``."""
        return await self._get(f"/webinars/{webinar_id}/panelists")

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        token = await self._get_token()
        try:
            resp = await self._client.get(
                path,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ZoomAPIError(
                f"Zoom API {path} returned {e.response.status_code}: {e.response.text[:200]}",
                status_code=e.response.status_code,
                path=path,
            ) from e
        except httpx.TransportError as e:
            raise ZoomAPIError(f"Zoom API {path} unreachable: {e}", path=path) from e
        log.debug("zoom_request", path=path, status=resp.status_code)
        return resp.json()

    async def _get_token(self) -> str:
        if self._config.access_token:
            return self._config.access_token
        if self._token and self._token_expires_at and time.monotonic() < self._token_expires_at:
            return self._token
        return await self._fetch_token()

    async def _fetch_token(self) -> str:
        cfg = self._config
        if not (cfg.account_id and cfg.client_id and cfg.client_secret):
            raise ZoomAuthError("No Zoom credentials configured (access_token or account/client credentials)")

        try:
            resp = await self._client.post(
                cfg.token_url,
                params={"grant_type": "account_credentials", "account_id": cfg.account_id},
                auth=(cfg.client_id, cfg.client_secret),
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ZoomAuthError(
                f"Zoom token exchange failed with {e.response.status_code}",
                status_code=e.response.status_code,
                path=cfg.token_url,
            ) from e
        except httpx.TransportError as e:
            raise ZoomAuthError(f"Zoom token endpoint unreachable: {e}", path=cfg.token_url) from e

        body = resp.json()
        self._token = body["access_token"]
        expires_in = int(body.get("expires_in", 3600))
        self._token_expires_at = time.monotonic() + max(expires_in - _TOKEN_EXPIRY_MARGIN, 0)
        log.info("zoom_token_refreshed", expires_in=expires_in)
        return self._token
