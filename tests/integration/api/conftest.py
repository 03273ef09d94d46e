from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from tierpanel.adapters.dev_notifier import DevNotifier
from tierpanel.adapters.sqlite.repos import SQLiteAccountRepo
from tierpanel.adapters.sqlite.schema import init_db
from tierpanel.api.deps import (
    ACCOUNT_HEADER,
    Settings,
    get_notifier,
    get_rules,
    get_settings,
    get_tool_gate,
    get_workflow_registry,
)
from tierpanel.api.main import app
from tierpanel.components.tool_gate import ToolGate
from tierpanel.components.upgrade import WorkflowRegistry
from tierpanel.domain.policy import PolicyEngine


@pytest.fixture
def settings(tmp_path):
    s = Settings()
    s.data_dir = tmp_path / "data"
    s.data_dir.mkdir()
    s.db_path = str(s.data_dir / "test.db")
    s.objects_dir = s.data_dir / "objects"
    init_db(s.db_path)
    return s


@pytest.fixture
def notifier():
    return DevNotifier()


@pytest.fixture
def tool_backend():
    backend = AsyncMock()
    backend.invoke.return_value = {"status": "ok"}
    return backend


@pytest.fixture
def client(settings, rules, notifier, tool_backend):
    registry = WorkflowRegistry()
    gate = ToolGate(
        PolicyEngine(),
        {c: tool_backend for c in ("downloader", "qr", "source", "image")},
    )

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_rules] = lambda: rules
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_workflow_registry] = lambda: registry
    app.dependency_overrides[get_tool_gate] = lambda: gate
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seed(settings, make_account):
    """Persist an account and return it."""
    repo = SQLiteAccountRepo(settings.db_path)

    def _seed(role="member", is_admin=False, username=None):
        account = make_account(role, is_admin=is_admin, username=username)
        repo.save(account)
        return account

    return _seed


def auth(account):
    return {ACCOUNT_HEADER: str(account.id)}


@pytest.fixture
def headers():
    return auth
