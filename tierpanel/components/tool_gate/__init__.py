"""
Tool gate component.

Public API for capability-checked tool dispatch.
"""

from .component import ToolGate, run
from .models import InvokeToolInput, InvokeToolOutput
from .ports import ToolBackendError, ToolBackendPort

__all__ = [
    # Entry points
    "ToolGate",
    "run",
    # Models
    "InvokeToolInput",
    "InvokeToolOutput",
    # Ports
    "ToolBackendError",
    "ToolBackendPort",
]
