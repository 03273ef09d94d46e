from typing import Any, Protocol


class ToolBackendError(Exception):
    """Raised by a tool backend when the invocation fails."""


class ToolBackendPort(Protocol):
    async def invoke(self, tool_id: str, target: str) -> dict[str, Any]:
        ...
