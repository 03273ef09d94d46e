"""
Accounts component.

User management under the delegation ceiling: managers list, create, delete
and re-tier only accounts strictly below their own tier. Self-deletion and
self-demotion are refused for every account, administrators included.
"""

from __future__ import annotations

import logging
from uuid import UUID

from tierpanel.domain.entities import Account
from tierpanel.domain.errors import (
    AuthorizationError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from tierpanel.domain.policy import PolicyEngine
from tierpanel.domain.roles import rank
from tierpanel.domain.uploads import object_key, validate_upload
from tierpanel.rules.models import UploadsRules

from .models import (
    AccountListOutput,
    AccountOutput,
    ChangeRoleInput,
    CreateAccountInput,
    DeleteAccountInput,
    ListAccountsInput,
    PresenceInput,
    UpdateAvatarInput,
)
from .ports import (
    AccountRepoPort,
    ClockPort,
    IdentityError,
    IdentityProviderPort,
    ObjectStoreError,
    ObjectStorePort,
    RecordStoreError,
)

logger = logging.getLogger(__name__)


def _parse_id(raw: str | UUID) -> UUID:
    try:
        return UUID(str(raw))
    except (ValueError, TypeError) as exc:
        raise ValidationError("Invalid account ID format", field="target_id") from exc


def _load_target(repo: AccountRepoPort, raw_id: str | UUID) -> Account:
    account_id = _parse_id(raw_id)
    try:
        target = repo.get_by_id(account_id)
    except RecordStoreError as exc:
        raise ExternalServiceError("record_store", "Could not load account") from exc
    if target is None:
        raise NotFoundError("Account", account_id)
    return target


def _save(repo: AccountRepoPort, account: Account) -> None:
    try:
        repo.save(account)
    except RecordStoreError as exc:
        raise ExternalServiceError("record_store", "Could not save account") from exc


def _refuse_self(actor: Account, target: Account, capability: str) -> None:
    if PolicyEngine.is_self_action(actor, target.id):
        raise AuthorizationError(
            "This action cannot be performed on your own account", capability=capability
        )


def run_list_manageable(
    inp: ListAccountsInput, repo: AccountRepoPort, policy: PolicyEngine
) -> AccountListOutput:
    policy.can_manage_users(inp.actor).raise_for_denial()

    roles = policy.manageable_roles(inp.actor)
    try:
        accounts = repo.list_by_roles(list(roles))
    except RecordStoreError as exc:
        raise ExternalServiceError("record_store", "Could not list accounts") from exc

    accounts.sort(key=lambda a: a.created_at, reverse=True)
    return AccountListOutput(accounts=accounts)


def run_create_account(
    inp: CreateAccountInput,
    repo: AccountRepoPort,
    identity: IdentityProviderPort,
    policy: PolicyEngine,
    clock: ClockPort,
) -> AccountOutput:
    if inp.role not in ("member", "premium", "vip"):
        raise ValidationError(f"Unknown role: {inp.role}", field="role")
    policy.can_create_role(inp.actor, inp.role).raise_for_denial()

    username = inp.username.strip()
    email = inp.email.strip()
    if not username:
        raise ValidationError("Username is required", field="username")
    if not email or "@" not in email:
        raise ValidationError("A valid email is required", field="email")
    if not inp.password:
        raise ValidationError("Password is required", field="password")

    try:
        existing = repo.get_by_email(email)
    except RecordStoreError as exc:
        raise ExternalServiceError("record_store", "Could not load account") from exc
    if existing is not None:
        raise ValidationError("Email already registered", field="email")

    try:
        account_id = identity.register(email, inp.password, username)
    except IdentityError as exc:
        raise ExternalServiceError("identity", str(exc)) from exc

    account = Account(
        id=account_id,
        username=username,
        email=email,
        role=inp.role,  # type: ignore[arg-type]
        created_at=clock.now_utc(),
    )
    _save(repo, account)
    logger.info("Account %s (%s) created by %s", account.id, account.role, inp.actor.id)
    return AccountOutput(account=account)


def run_delete_account(
    inp: DeleteAccountInput, repo: AccountRepoPort, policy: PolicyEngine
) -> None:
    policy.can_manage_users(inp.actor).raise_for_denial()

    target = _load_target(repo, inp.target_id)
    _refuse_self(inp.actor, target, "delete_user")
    policy.can_delete_user(inp.actor, target.role).raise_for_denial()

    try:
        repo.delete(target.id)
    except RecordStoreError as exc:
        raise ExternalServiceError("record_store", "Could not delete account") from exc
    logger.info("Account %s deleted by %s", target.id, inp.actor.id)


def run_change_role(
    inp: ChangeRoleInput, repo: AccountRepoPort, policy: PolicyEngine
) -> AccountOutput:
    policy.can_manage_users(inp.actor).raise_for_denial()
    if inp.new_role not in ("member", "premium", "vip"):
        raise ValidationError(f"Unknown role: {inp.new_role}", field="new_role")

    target = _load_target(repo, inp.target_id)
    _refuse_self(inp.actor, target, "change_role")
    policy.can_change_role(inp.actor, target.role, inp.new_role).raise_for_denial()

    if target.role == inp.new_role:
        return AccountOutput(account=target)

    updated = target.model_copy(update={"role": inp.new_role})
    _save(repo, updated)
    direction = "promoted" if rank(inp.new_role) > rank(target.role) else "demoted"
    logger.info(
        "Account %s %s to %s by %s", target.id, direction, inp.new_role, inp.actor.id
    )
    return AccountOutput(account=updated)


async def run_update_avatar(
    inp: UpdateAvatarInput,
    repo: AccountRepoPort,
    object_store: ObjectStorePort,
    uploads: UploadsRules,
    clock: ClockPort,
) -> AccountOutput:
    ext = validate_upload(inp.data, inp.filename, uploads)
    key = object_key(uploads.avatar_prefix, inp.account.id, clock.now_utc(), ext)

    try:
        ref = await object_store.put(key, inp.data, inp.content_type)
    except ObjectStoreError as exc:
        logger.warning("Avatar upload failed for account %s: %s", inp.account.id, exc)
        raise ExternalServiceError("object_store", "Avatar upload failed") from exc

    # Column-level write; the caller's snapshot may predate a role change
    try:
        updated = repo.update_avatar(inp.account.id, ref)
    except RecordStoreError as exc:
        logger.error("Avatar %s stored but not recorded for %s", key, inp.account.id)
        raise ExternalServiceError("record_store", "Could not save account") from exc
    if updated is None:
        raise NotFoundError("Account", inp.account.id)
    return AccountOutput(account=updated)


def run_touch_presence(
    inp: PresenceInput, repo: AccountRepoPort, clock: ClockPort
) -> AccountOutput:
    # Advisory metadata only; never read by the policy engine
    try:
        updated = repo.update_presence(inp.account.id, inp.online, clock.now_utc())
    except RecordStoreError as exc:
        raise ExternalServiceError("record_store", "Could not save account") from exc
    if updated is None:
        raise NotFoundError("Account", inp.account.id)
    return AccountOutput(account=updated)
