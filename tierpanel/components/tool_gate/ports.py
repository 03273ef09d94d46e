"""
Tool gate component ports.

One backend per tool category; each is opaque to the gate.
"""

from tierpanel.ports.tools import ToolBackendError, ToolBackendPort

__all__ = ["ToolBackendError", "ToolBackendPort"]
