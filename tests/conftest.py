from datetime import UTC, datetime
from pathlib import Path

import pytest

from tierpanel.adapters.clock import FixedClock
from tierpanel.domain.entities import Account
from tierpanel.domain.policy import PolicyEngine
from tierpanel.rules.loader import load_rules
from tierpanel.rules.models import Rules

PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture
def rules() -> Rules:
    # Load the REAL rules from project root
    return load_rules(PROJECT_ROOT / "rules.yaml")


@pytest.fixture
def policy() -> PolicyEngine:
    return PolicyEngine()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 1, 12, 12, 0, 0, tzinfo=UTC))


def _account(role: str = "member", is_admin: bool = False, username: str | None = None) -> Account:
    return Account(
        username=username or f"{role}-user",
        email=f"{username or role}@example.com",
        role=role,  # type: ignore[arg-type]
        is_admin=is_admin,
    )


@pytest.fixture
def member() -> Account:
    return _account("member")


@pytest.fixture
def premium() -> Account:
    return _account("premium")


@pytest.fixture
def vip() -> Account:
    return _account("vip")


@pytest.fixture
def admin() -> Account:
    return _account("member", is_admin=True, username="admin")


@pytest.fixture
def make_account():
    return _account
