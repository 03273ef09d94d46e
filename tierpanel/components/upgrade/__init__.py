"""
Upgrade component.

Public API for the tier upgrade workflow.
"""

from .component import PACKAGES, UpgradeWorkflow, WorkflowRegistry, quote
from .models import (
    PAYMENT_CONFIRMATION_EVENT,
    ConfirmInput,
    ConfirmOutput,
    Quote,
    SelectionOutput,
    SelectPackageInput,
    UploadProofInput,
    WorkflowState,
)

__all__ = [
    # Entry points
    "UpgradeWorkflow",
    "WorkflowRegistry",
    "quote",
    "PACKAGES",
    # Models
    "ConfirmInput",
    "ConfirmOutput",
    "Quote",
    "SelectionOutput",
    "SelectPackageInput",
    "UploadProofInput",
    "WorkflowState",
    "PAYMENT_CONFIRMATION_EVENT",
]
