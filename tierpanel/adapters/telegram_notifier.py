"""
Telegram notification dispatcher.

Posts notification events to an administrator chat through the Telegram
Bot API. Failures are returned as FAILED results, never raised.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

import httpx

from tierpanel.ports.notifier import DispatchResult, DispatchStatus

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"
MAX_MESSAGE_LENGTH = 4096
NOTIFY_TZ = ZoneInfo("Asia/Jakarta")

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b-\x0c\x0e-\x1f]")


def sanitize_text(text: str, max_len: int = MAX_MESSAGE_LENGTH) -> str:
    cleaned = _CONTROL_CHARS.sub("", text or "")
    if len(cleaned) > max_len:
        cleaned = cleaned[: max_len - 20] + "... [truncated]"
    return cleaned


def redact_token(token: str) -> str:
    if not token:
        return ""
    if len(token) <= 12:
        return "***"
    return token[:8] + "..." + token[-4:]


def format_amount(amount: Any) -> str:
    try:
        # Indonesian grouping uses dots
        return f"{int(amount):,}".replace(",", ".")
    except (TypeError, ValueError):
        return str(amount)


def format_event(event_type: str, payload: dict[str, Any], now: datetime) -> str:
    if event_type == "payment_confirmation":
        return (
            "NEW PAYMENT CONFIRMATION\n\n"
            f"Transaction ID: {payload.get('transaction_id')}\n"
            f"Name: {payload.get('name')}\n"
            f"Email: {payload.get('email')}\n"
            f"Package: {payload.get('package')}\n"
            f"Amount: {payload.get('currency', '')} {format_amount(payload.get('amount'))}\n"
            f"Method: {str(payload.get('payment_method', '')).upper()}\n\n"
            f"Time: {now.astimezone(NOTIFY_TZ).strftime('%d/%m/%Y %H:%M:%S')}"
        )
    lines = [event_type.upper()] + [f"{k}: {v}" for k, v in payload.items()]
    return "\n".join(lines)


class TelegramNotifier:
    def __init__(
        self,
        token: str,
        chat_id: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.token = token
        self.chat_id = chat_id
        self.timeout = timeout
        self._client = client

    async def _post(self, url: str, body: dict[str, Any]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(url, json=body, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(url, json=body)

    async def send(self, event_type: str, payload: dict[str, Any]) -> DispatchResult:
        text = sanitize_text(format_event(event_type, payload, datetime.now(NOTIFY_TZ)))
        url = f"{TELEGRAM_API}/bot{self.token}/sendMessage"
        body = {"chat_id": self.chat_id, "text": text}

        try:
            resp = await self._post(url, body)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(
                "Telegram dispatch failed: %s (token=%s)", exc, redact_token(self.token)
            )
            return DispatchResult(status=DispatchStatus.FAILED, error=str(exc))

        if not data.get("ok", False):
            description = data.get("description", "Telegram rejected the message")
            logger.error("Telegram dispatch rejected: %s", description)
            return DispatchResult(status=DispatchStatus.FAILED, error=description)

        message_id = data.get("result", {}).get("message_id")
        return DispatchResult(
            status=DispatchStatus.SENT,
            message_id=str(message_id) if message_id is not None else None,
        )
