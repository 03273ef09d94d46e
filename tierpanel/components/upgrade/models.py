"""
Upgrade component models.

Data models for the purchase -> proof-of-payment -> notification workflow.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from tierpanel.domain.entities import PackageType, UpgradeTransaction

PAYMENT_CONFIRMATION_EVENT = "payment_confirmation"


class WorkflowState(str, Enum):
    SELECTING = "selecting"
    AWAITING_PAYMENT = "awaiting_payment"
    PENDING_CONFIRMATION = "pending_confirmation"
    NOTIFIED = "notified"


@dataclass(frozen=True)
class Quote:
    package_type: PackageType
    amount: int
    currency: str


@dataclass(frozen=True)
class SelectPackageInput:
    """
    Package and payment method chosen by the account.

    `claimed_amount` is whatever the client displayed; it is never trusted.
    """

    package_type: str
    payment_method: str
    claimed_amount: int | None = None


@dataclass(frozen=True)
class UploadProofInput:
    data: bytes
    filename: str
    content_type: str = "application/octet-stream"


@dataclass(frozen=True)
class ConfirmInput:
    display_name: str
    email: str


@dataclass(frozen=True)
class SelectionOutput:
    state: WorkflowState
    quote: Quote
    payment_method: str
    payment_account_number: str | None = None


@dataclass(frozen=True)
class ConfirmOutput:
    transaction: UpgradeTransaction
    dispatched: bool  # False when the confirmation was already recorded
