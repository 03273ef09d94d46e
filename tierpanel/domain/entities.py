from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

# --- Enums / Literals ---
RoleType = Literal["member", "premium", "vip"]
PackageType = Literal["premium", "vip"]
TransactionStatus = Literal["draft", "awaiting_proof", "pending_confirmation", "notified"]


def _utcnow() -> datetime:
    return datetime.now(UTC)


# --- Accounts ---

class Account(BaseModel):
    """
    Immutable snapshot of an account as seen by one policy decision.

    `is_admin` is orthogonal to `role`. Presence fields are advisory only.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    username: str
    email: str = ""
    role: RoleType = "member"
    is_admin: bool = False
    avatar_url: str | None = None
    is_online: bool = False
    last_active_at: datetime | None = None
    created_at: datetime = Field(default_factory=_utcnow)

# --- Tools ---

class ToolDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: str
    required_role: RoleType
    # Presentation metadata, never read by the policy engine
    description: str = ""
    route: str | None = None

# --- Upgrade ---

class UpgradeTransaction(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    account_id: UUID
    package_type: PackageType
    amount: int
    payment_method: str
    proof_ref: str | None = None
    storage_key: str | None = None
    status: TransactionStatus = "draft"
    notified: bool = False
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

# --- Broadcast ---

class BroadcastMessage(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    sender_id: UUID
    message: str
    created_at: datetime = Field(default_factory=_utcnow)
