# src/llm/http_gate.py — v1
"""Single outbound HTTP call with an enforced wall-clock timeout.

The timeout is applied around the whole exchange with ``asyncio.timeout``,
so a server that trickles bytes cannot hold a call open past its budget.
When it fires the in-flight request task is cancelled and nothing from
that response reaches the caller.

Transport failures are classified by exception type, not message text:
  - httpx.TimeoutException / TimeoutError -> NetworkTimeout
  - any other httpx.TransportError (DNS, connect, read, protocol) -> NetworkUnreachable
Anything else propagates unchanged.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx

from cinearchive.core.errors import NetworkTimeout, NetworkUnreachable
from cinearchive.core.models import RawResponse
from cinearchive.logging.handlers import redact

logger = logging.getLogger(__name__)

ANALYSIS_TIMEOUT_S = 30.0
PROBE_TIMEOUT_S = 10.0


class HttpGate:
    """Issues exactly one network call per invocation."""

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def send(
        self,
        url: str,
        method: str = "POST",
        headers: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
        timeout_s: float = ANALYSIS_TIMEOUT_S,
    ) -> RawResponse:
        """Send one request and return its status and body.

        Raises:
            NetworkTimeout: The call did not complete within timeout_s.
            NetworkUnreachable: The connection could not be established or broke.
        """
        safe_url = redact(url)
        t0 = time.monotonic()
        try:
            async with asyncio.timeout(timeout_s):
                resp = await self.client.request(
                    method,
                    url,
                    headers=headers,
                    json=body,
                    timeout=timeout_s,
                )
        except (TimeoutError, httpx.TimeoutException) as exc:
            logger.warning("%s %s timed out after %.1fs", method, safe_url, timeout_s)
            raise NetworkTimeout(
                f"No answer from the inference service within {timeout_s:g}s."
            ) from exc
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, safe_url, type(exc).__name__)
            raise NetworkUnreachable(
                f"Could not reach the inference service ({type(exc).__name__})."
            ) from exc

        latency_ms = int((time.monotonic() - t0) * 1000)
        logger.debug("%s %s -> %d in %dms", method, safe_url, resp.status_code, latency_ms)
        return RawResponse(status_code=resp.status_code, body=resp.text)

    async def probe(self, url: str, timeout_s: float = PROBE_TIMEOUT_S) -> RawResponse:
        """Liveness variant: a bodiless GET with the shorter probe budget."""
        return await self.send(url, method="GET", timeout_s=timeout_s)

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
