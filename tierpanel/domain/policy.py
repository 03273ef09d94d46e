"""
Entitlement policy.

The single shared rule set consumed by every gated surface: tool access,
user management and broadcast. All checks are pure functions of an
immutable Account snapshot.

Two independent axes:
1. Ranked membership tier (member < premium < vip)
2. Administrator override (`is_admin`), which satisfies every check
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from tierpanel.domain.entities import Account, RoleType, ToolDescriptor
from tierpanel.domain.errors import AuthorizationError
from tierpanel.domain.roles import ROLES, at_least, below, rank

ADMIN = "admin"

# Tiers that may administer other accounts
MANAGER_ROLES: frozenset[str] = frozenset({"premium", "vip"})


class Capability(str, Enum):
    TOOL_ACCESS = "tool_access"
    MANAGE_USERS = "manage_users"
    CREATE_ROLE = "create_role"
    DELETE_USER = "delete_user"
    CHANGE_ROLE = "change_role"
    BROADCAST = "broadcast"


@dataclass(frozen=True)
class DenialReason:
    capability: Capability
    required_role: str
    message: str


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: DenialReason | None = None

    def __bool__(self) -> bool:
        return self.allowed

    def raise_for_denial(self) -> None:
        if self.allowed:
            return
        assert self.reason is not None
        raise AuthorizationError(
            self.reason.message,
            capability=self.reason.capability.value,
            required_role=self.reason.required_role,
        )


ALLOW = Decision(allowed=True)


def _deny(capability: Capability, required_role: str, message: str) -> Decision:
    return Decision(
        allowed=False,
        reason=DenialReason(capability=capability, required_role=required_role, message=message),
    )


def _tier_above(role: str) -> str:
    """Lowest tier allowed to administer `role` through delegation."""
    for candidate in ROLES:
        if rank(candidate) > rank(role):
            return candidate
    return ADMIN


class PolicyEngine:
    def can_access_tool(self, account: Account, tool: ToolDescriptor) -> Decision:
        if account.is_admin or at_least(account.role, tool.required_role):
            return ALLOW
        return _deny(
            Capability.TOOL_ACCESS,
            tool.required_role,
            f"Tool '{tool.name}' requires {tool.required_role} tier",
        )

    def can_manage_users(self, account: Account) -> Decision:
        if account.is_admin or account.role in MANAGER_ROLES:
            return ALLOW
        return _deny(Capability.MANAGE_USERS, "premium", "Managing users requires premium tier")

    def _within_ceiling(
        self, account: Account, target_role: str, capability: Capability
    ) -> Decision:
        """
        Delegation ceiling: a manager administers only tiers strictly below its own.
        """
        # Unknown target roles fail loudly, also for admins
        rank(target_role)

        if account.is_admin:
            return ALLOW
        if account.role in MANAGER_ROLES and below(target_role, account.role):
            return ALLOW

        required = _tier_above(target_role)
        return _deny(
            capability,
            required,
            f"Administering {target_role} accounts requires {required}",
        )

    def can_create_role(self, account: Account, target_role: str) -> Decision:
        return self._within_ceiling(account, target_role, Capability.CREATE_ROLE)

    def can_delete_user(self, account: Account, target_role: str) -> Decision:
        return self._within_ceiling(account, target_role, Capability.DELETE_USER)

    def can_change_role(self, account: Account, current_role: str, new_role: str) -> Decision:
        current = self._within_ceiling(account, current_role, Capability.CHANGE_ROLE)
        if not current:
            return current
        return self._within_ceiling(account, new_role, Capability.CHANGE_ROLE)

    def can_broadcast(self, account: Account) -> Decision:
        if account.is_admin or account.role == "vip":
            return ALLOW
        return _deny(Capability.BROADCAST, "vip", "Broadcasting requires vip tier")

    def manageable_roles(self, account: Account) -> list[RoleType]:
        """Roles whose accounts this account may list and administer."""
        if account.is_admin:
            return list(ROLES)
        if account.role not in MANAGER_ROLES:
            return []
        return [r for r in ROLES if below(r, account.role)]

    @staticmethod
    def is_self_action(actor: Account, target_id: UUID | str) -> bool:
        return str(actor.id) == str(target_id)
