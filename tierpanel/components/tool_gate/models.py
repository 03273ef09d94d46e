"""
Tool gate component models.

Data models for gated tool invocation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from tierpanel.domain.entities import Account


@dataclass(frozen=True)
class InvokeToolInput:
    """Input for invoking a gated tool."""

    account: Account
    tool_id: str
    target: str | None


@dataclass(frozen=True)
class InvokeToolOutput:
    """Result surfaced from the tool backend."""

    tool_id: str
    target: str
    result: dict[str, Any] = field(default_factory=dict)
