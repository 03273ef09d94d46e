"""
Broadcast component.

A message reaches every account only when `can_broadcast` holds for the
sender; a denied request never creates a record.
"""

from __future__ import annotations

import logging

from tierpanel.domain.entities import BroadcastMessage
from tierpanel.domain.errors import ExternalServiceError, ValidationError
from tierpanel.domain.policy import PolicyEngine

from .models import BroadcastListOutput, BroadcastOutput, SendBroadcastInput
from .ports import BroadcastRepoPort, ClockPort, RecordStoreError

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 1000


def run_send_broadcast(
    inp: SendBroadcastInput,
    repo: BroadcastRepoPort,
    policy: PolicyEngine,
    clock: ClockPort,
) -> BroadcastOutput:
    policy.can_broadcast(inp.account).raise_for_denial()

    text = inp.message.strip()
    if not text:
        raise ValidationError("Message is required", field="message")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise ValidationError(
            f"Message exceeds {MAX_MESSAGE_LENGTH} characters", field="message"
        )

    message = BroadcastMessage(sender_id=inp.account.id, message=text, created_at=clock.now_utc())
    try:
        saved = repo.insert(message)
    except RecordStoreError as exc:
        raise ExternalServiceError("record_store", "Could not save broadcast") from exc

    logger.info("Broadcast %s sent by %s", saved.id, inp.account.id)
    return BroadcastOutput(message=saved)


def run_list_recent(repo: BroadcastRepoPort, limit: int = 20) -> BroadcastListOutput:
    if limit < 1:
        raise ValidationError("Limit must be positive", field="limit")
    try:
        messages = repo.list_recent(limit)
    except RecordStoreError as exc:
        raise ExternalServiceError("record_store", "Could not load broadcasts") from exc
    return BroadcastListOutput(messages=messages)
