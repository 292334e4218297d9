"""Forwards emitted events as JSON to an HTTP endpoint.

The body carries the flat event payload under ``event`` and the dedupe
metadata under ``meta`` so receivers can deduplicate on ``meta.id``.
"""

from __future__ import annotations

from typing import Any

import httpx

from panelwatch.config import SinkConfig
from panelwatch.core.bus import Event
from panelwatch.utils.logging import get_logger

log = get_logger(__name__)


class WebhookForwarder:
    """Bus handler that POSTs each event to ``sink.webhook_url``.

    Delivery failures are logged and swallowed; they never reach the poller.
    """

    def __init__(
        self,
        config: SinkConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not config.webhook_url:
            raise ValueError("Webhook url must not be empty")
        self._url = config.webhook_url
        self._client = httpx.AsyncClient(
            timeout=config.webhook_timeout,
            headers={"Content-Type": "application/json", **config.webhook_headers},
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def handle(self, event: Event) -> None:
        await self.send(event)

    async def send(self, event: Event) -> bool:
        """POST *event*. Returns True on a 2xx response."""
        try:
            response = await self._client.post(self._url, json=self.build_payload(event))
        except httpx.TimeoutException:
            log.warning("webhook_request_timeout", event_id=event.id, url=self._url)
            return False
        except httpx.HTTPError as e:
            log.warning("webhook_http_error", event_id=event.id, error=str(e))
            return False

        if response.is_success:
            log.debug("webhook_delivered", event_id=event.id, status_code=response.status_code)
            return True
        log.warning(
            "webhook_non_2xx_response",
            event_id=event.id,
            status_code=response.status_code,
            body=response.text[:200],
        )
        return False

    @staticmethod
    def build_payload(event: Event) -> dict[str, Any]:
        return {
            "event": event.data,
            "meta": {
                "id": event.id,
                "summary": event.summary,
                "ts": event.timestamp.isoformat(),
            },
        }
