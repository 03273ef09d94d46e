"""
HTTP tool backend.

Forwards a gated tool invocation to the external service configured for its
category. The response body is returned as-is; the gate never retries.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from tierpanel.ports.tools import ToolBackendError, ToolBackendPort
from tierpanel.rules.models import ToolsRules

logger = logging.getLogger(__name__)


class HttpToolBackend:
    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self._client = client

    async def _post(self, body: dict[str, Any]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self.endpoint, json=body, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.endpoint, json=body)

    async def invoke(self, tool_id: str, target: str) -> dict[str, Any]:
        try:
            resp = await self._post({"tool_id": tool_id, "target": target})
        except httpx.HTTPError as exc:
            raise ToolBackendError(f"Backend unreachable: {exc}") from exc

        try:
            data = resp.json()
        except ValueError:
            data = {"raw": resp.text}

        if resp.is_error:
            detail = data.get("error") if isinstance(data, dict) else None
            raise ToolBackendError(detail or f"Backend returned HTTP {resp.status_code}")

        if not isinstance(data, dict):
            return {"result": data}
        return data


def build_tool_backends(
    rules: ToolsRules, client: httpx.AsyncClient | None = None
) -> dict[str, ToolBackendPort]:
    """One backend per configured tool category."""
    backends: dict[str, ToolBackendPort] = {}
    for category, cfg in rules.backends.items():
        backends[category] = HttpToolBackend(
            cfg.endpoint, timeout=cfg.timeout_seconds, client=client
        )
        logger.debug("Tool backend %s -> %s", category, cfg.endpoint)
    return backends
