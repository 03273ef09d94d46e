"""
Error taxonomy shared by every gated surface.

- ValidationError: missing or malformed input. Terminal for the action.
- AuthorizationError: a capability was denied. Terminal, names the required tier.
- ExternalServiceError: record store, object store or notification failure.
  Recoverable; workflow state is left unchanged so the caller may retry.
- RemoteToolError: a tool backend failed. Surfaced, never retried.
"""

from __future__ import annotations


class PanelError(Exception):
    """Base class for panel errors."""


class ValidationError(PanelError):
    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class WorkflowBusyError(ValidationError):
    """Another transition of the same workflow is still in flight."""

    def __init__(self, message: str = "Another action is already in progress") -> None:
        super().__init__(message)


class NotFoundError(ValidationError):
    def __init__(self, kind: str, ident: object) -> None:
        self.kind = kind
        self.ident = ident
        super().__init__(f"{kind} not found: {ident}")


class AuthorizationError(PanelError):
    def __init__(
        self,
        message: str,
        *,
        capability: str | None = None,
        required_role: str | None = None,
    ) -> None:
        self.capability = capability
        self.required_role = required_role
        super().__init__(message)


class ExternalServiceError(PanelError):
    def __init__(self, service: str, message: str) -> None:
        self.service = service
        super().__init__(f"{service}: {message}")


class RemoteToolError(PanelError):
    def __init__(self, tool_id: str, message: str) -> None:
        self.tool_id = tool_id
        super().__init__(f"Tool '{tool_id}' failed: {message}")
