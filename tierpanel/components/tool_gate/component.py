"""
Tool gate component.

Sequences every gated tool action in strict order:
1. Capability check (AuthorizationError naming the required tier)
2. Precondition check on the target parameter (ValidationError)
3. Dispatch to the category backend (RemoteToolError on failure, no retry)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from tierpanel.domain.catalog import get_tool
from tierpanel.domain.errors import RemoteToolError, ValidationError
from tierpanel.domain.policy import PolicyEngine

from .models import InvokeToolInput, InvokeToolOutput
from .ports import ToolBackendError, ToolBackendPort

logger = logging.getLogger(__name__)


class ToolGate:
    def __init__(
        self,
        policy: PolicyEngine,
        backends: Mapping[str, ToolBackendPort],
    ) -> None:
        self.policy = policy
        self.backends = backends

    async def invoke(self, inp: InvokeToolInput) -> InvokeToolOutput:
        tool = get_tool(inp.tool_id)

        decision = self.policy.can_access_tool(inp.account, tool)
        if not decision:
            logger.info(
                "Tool %s denied for account %s (requires %s)",
                tool.id,
                inp.account.id,
                tool.required_role,
            )
            decision.raise_for_denial()

        target = (inp.target or "").strip()
        if not target:
            raise ValidationError("Target is required", field="target")

        backend = self.backends.get(tool.category)
        if backend is None:
            raise RemoteToolError(tool.id, f"No backend configured for '{tool.category}'")

        try:
            result = await backend.invoke(tool.id, target)
        except ToolBackendError as exc:
            logger.warning("Tool %s backend failed: %s", tool.id, exc)
            raise RemoteToolError(tool.id, str(exc)) from exc

        logger.info("Tool %s dispatched for account %s", tool.id, inp.account.id)
        return InvokeToolOutput(tool_id=tool.id, target=target, result=result)


async def run(inp: InvokeToolInput, gate: ToolGate) -> InvokeToolOutput:
    """Entry point following the atomic component pattern."""
    return await gate.invoke(inp)
