"""
HTTP sink that forwards a finished payload to the agent.
"""

from __future__ import annotations

import httpx
import structlog

from kubesample.core.errors import SinkError
from kubesample.integration.integration import Integration

logger = structlog.get_logger()

DEFAULT_USER_AGENT = "kubesample-sink/0.1.0"


class HTTPSink:
    """POSTs integration payloads to an HTTP endpoint."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport

    def write(self, integration: Integration) -> None:
        """
        Send the integration payload.

        Raises:
            SinkError: on transport failures or non-2xx responses
        """
        body = integration.publish()
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                resp = client.post(
                    self._url,
                    content=body,
                    headers={"Content-Type": "application/json", "User-Agent": self._user_agent},
                )
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise SinkError(f"failed to send payload: {exc}", {"url": self._url}) from exc

        logger.debug("payload_sent", url=self._url, entities=len(integration.entities))
