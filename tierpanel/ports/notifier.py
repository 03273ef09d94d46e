"""
Notification dispatcher port.

Outbound human notification (e.g. a chat relay). Implementations:
- DevNotifier: logs and records events (dev/test)
- TelegramNotifier: posts to the Telegram Bot API
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol


class DispatchStatus(Enum):
    SENT = "sent"
    SKIPPED = "skipped"  # Dev dispatcher
    FAILED = "failed"


@dataclass(frozen=True)
class DispatchResult:
    status: DispatchStatus
    message_id: str | None = None
    error: str | None = None

    @property
    def acknowledged(self) -> bool:
        return self.status in (DispatchStatus.SENT, DispatchStatus.SKIPPED)


class NotifierPort(Protocol):
    async def send(self, event_type: str, payload: dict[str, Any]) -> DispatchResult:
        ...
