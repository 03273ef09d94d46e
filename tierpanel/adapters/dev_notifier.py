"""
Dev notification dispatcher.

Logs notification events instead of sending them and keeps them in memory
for test assertions. Returns SKIPPED, which counts as acknowledged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from tierpanel.ports.notifier import DispatchResult, DispatchStatus

logger = logging.getLogger(__name__)


@dataclass
class LoggedEvent:
    """Record of a logged notification for test assertions."""

    id: str
    event_type: str
    payload: dict[str, Any]
    logged_at: datetime


@dataclass
class DevNotifier:
    events: list[LoggedEvent] = field(default_factory=list)
    log_level: int = logging.INFO

    async def send(self, event_type: str, payload: dict[str, Any]) -> DispatchResult:
        message_id = f"dev-{uuid4().hex[:12]}"
        self.events.append(
            LoggedEvent(
                id=message_id,
                event_type=event_type,
                payload=dict(payload),
                logged_at=datetime.now(UTC),
            )
        )
        logger.log(
            self.log_level,
            "NOTIFY (dev): type=%s payload=%s id=%s",
            event_type,
            payload,
            message_id,
        )
        return DispatchResult(status=DispatchStatus.SKIPPED, message_id=message_id)

    # --- Test Helper Methods ---

    def get_last_event(self) -> LoggedEvent | None:
        return self.events[-1] if self.events else None

    def clear(self) -> None:
        self.events.clear()

    @property
    def event_count(self) -> int:
        return len(self.events)
