import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends, Header, HTTPException, status

from tierpanel.adapters.clock import SystemClock
from tierpanel.adapters.http_tool_backend import build_tool_backends
from tierpanel.adapters.identity import TrustedHeaderIdentity
from tierpanel.adapters.local_objectstore import LocalObjectStore
from tierpanel.adapters.sqlite.repos import (
    SQLiteAccountRepo,
    SQLiteBroadcastRepo,
    SQLiteTransactionRepo,
)
from tierpanel.app_shell.config import build_notifier
from tierpanel.components.tool_gate import ToolGate
from tierpanel.components.upgrade import WorkflowRegistry
from tierpanel.domain.entities import Account
from tierpanel.domain.policy import PolicyEngine
from tierpanel.ports.clock import ClockPort
from tierpanel.ports.identity import IdentityProviderPort
from tierpanel.ports.notifier import NotifierPort
from tierpanel.ports.objectstore import ObjectStorePort
from tierpanel.ports.repo import AccountRepoPort, BroadcastRepoPort, TransactionRepoPort
from tierpanel.rules.loader import load_rules
from tierpanel.rules.models import Rules

ACCOUNT_HEADER = "X-Account-Id"


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.data_dir = Path(os.environ.get("PANEL_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "panel.db")
        self.objects_dir = self.data_dir / "objects"
        self.rules_path = Path(os.environ.get("PANEL_RULES_PATH", "rules.yaml"))


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Repos ---
def get_account_repo(settings: Settings = Depends(get_settings)) -> AccountRepoPort:
    return SQLiteAccountRepo(settings.db_path)


def get_transaction_repo(settings: Settings = Depends(get_settings)) -> TransactionRepoPort:
    return SQLiteTransactionRepo(settings.db_path)


def get_broadcast_repo(settings: Settings = Depends(get_settings)) -> BroadcastRepoPort:
    return SQLiteBroadcastRepo(settings.db_path)


# --- Collaborators ---
def get_object_store(settings: Settings = Depends(get_settings)) -> ObjectStorePort:
    return LocalObjectStore(settings.objects_dir)


@lru_cache
def get_notifier(settings: Settings = Depends(get_settings)) -> NotifierPort:
    return build_notifier(get_rules(settings))


def get_clock() -> ClockPort:
    return SystemClock()


def get_policy() -> PolicyEngine:
    return PolicyEngine()


def get_tool_gate(
    rules: Rules = Depends(get_rules),
    policy: PolicyEngine = Depends(get_policy),
) -> ToolGate:
    return ToolGate(policy, build_tool_backends(rules.tools))


@lru_cache
def get_workflow_registry() -> WorkflowRegistry:
    return WorkflowRegistry()


# --- Identity ---
def get_identity(
    accounts: AccountRepoPort = Depends(get_account_repo),
) -> IdentityProviderPort:
    return TrustedHeaderIdentity(accounts)


def get_current_account(
    x_account_id: str | None = Header(default=None, alias=ACCOUNT_HEADER),
    identity: IdentityProviderPort = Depends(get_identity),
) -> Account:
    # Read once per request; a concurrent role change shows up on the next one
    account = identity.current_account(x_account_id)
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return account
