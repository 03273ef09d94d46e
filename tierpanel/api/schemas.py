from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from tierpanel.domain.entities import PackageType, RoleType, TransactionStatus


class ToolResponse(BaseModel):
    id: str
    name: str
    category: str
    required_role: RoleType
    description: str
    route: str | None
    locked: bool


class InvokeToolRequest(BaseModel):
    target: str | None = None


class InvokeToolResponse(BaseModel):
    tool_id: str
    target: str
    result: dict[str, Any]


class QuoteResponse(BaseModel):
    package_type: PackageType
    amount: int
    currency: str


class SelectPackageRequest(BaseModel):
    package_type: str
    payment_method: str
    # Accepted for compatibility with older clients, never used for pricing
    amount: int | None = None


class SelectionResponse(BaseModel):
    state: str
    quote: QuoteResponse
    payment_method: str
    payment_account_number: str | None


class TransactionResponse(BaseModel):
    id: UUID
    package_type: PackageType
    amount: int
    payment_method: str
    proof_ref: str | None
    status: TransactionStatus
    notified: bool
    created_at: datetime


class ConfirmRequest(BaseModel):
    display_name: str
    email: str
    transaction_id: UUID | None = None


class ConfirmResponse(BaseModel):
    transaction: TransactionResponse
    dispatched: bool


class AccountResponse(BaseModel):
    id: UUID
    username: str
    email: str
    role: RoleType
    is_admin: bool
    avatar_url: str | None
    is_online: bool
    last_active_at: datetime | None
    created_at: datetime


class AccountCreateRequest(BaseModel):
    username: str
    email: str
    password: str
    role: str = "member"


class RoleChangeRequest(BaseModel):
    role: str


class BroadcastRequest(BaseModel):
    message: str


class BroadcastResponse(BaseModel):
    id: UUID
    sender_id: UUID
    message: str
    created_at: datetime
