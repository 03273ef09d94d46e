from unittest.mock import AsyncMock

import pytest

from tierpanel.components.tool_gate import InvokeToolInput, ToolBackendError, ToolGate, run
from tierpanel.domain.errors import AuthorizationError, RemoteToolError, ValidationError
from tierpanel.domain.policy import PolicyEngine


@pytest.fixture
def backend():
    mock = AsyncMock()
    mock.invoke.return_value = {"status": "ok"}
    return mock


@pytest.fixture
def gate(backend):
    backends = {"downloader": backend, "qr": backend, "source": backend, "image": backend}
    return ToolGate(PolicyEngine(), backends)


@pytest.mark.asyncio
async def test_premium_denied_vip_tool_names_vip(gate, backend, make_account):
    inp = InvokeToolInput(
        account=make_account("premium"),
        tool_id="batch-downloader",
        target="https://example.com/playlist",
    )

    with pytest.raises(AuthorizationError) as exc_info:
        await gate.invoke(inp)

    assert exc_info.value.required_role == "vip"
    assert "requires vip tier" in str(exc_info.value)
    assert "VIP" not in str(exc_info.value)
    backend.invoke.assert_not_called()


@pytest.mark.asyncio
async def test_authorization_checked_before_target(gate, backend, make_account):
    # Missing target on a locked tool still reports the tier, not the input
    inp = InvokeToolInput(account=make_account("member"), tool_id="source", target="")

    with pytest.raises(AuthorizationError):
        await gate.invoke(inp)
    backend.invoke.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("target", [None, "", "   "])
async def test_missing_target_is_validation_error(gate, backend, make_account, target):
    inp = InvokeToolInput(account=make_account("vip"), tool_id="qr", target=target)

    with pytest.raises(ValidationError) as exc_info:
        await gate.invoke(inp)
    assert exc_info.value.field == "target"
    backend.invoke.assert_not_called()


@pytest.mark.asyncio
async def test_unknown_tool(gate, make_account):
    inp = InvokeToolInput(account=make_account("vip"), tool_id="ddos", target="x")
    with pytest.raises(ValidationError):
        await gate.invoke(inp)


@pytest.mark.asyncio
async def test_dispatches_trimmed_target(gate, backend, make_account):
    inp = InvokeToolInput(
        account=make_account("premium"), tool_id="source", target="  https://example.com  "
    )

    out = await gate.invoke(inp)

    backend.invoke.assert_awaited_once_with("source", "https://example.com")
    assert out.tool_id == "source"
    assert out.target == "https://example.com"
    assert out.result == {"status": "ok"}


@pytest.mark.asyncio
async def test_admin_member_reaches_vip_tool(gate, backend, make_account):
    inp = InvokeToolInput(
        account=make_account("member", is_admin=True), tool_id="image-batch", target="album-1"
    )
    out = await run(inp, gate)
    assert out.tool_id == "image-batch"
    backend.invoke.assert_awaited_once_with("image-batch", "album-1")


@pytest.mark.asyncio
async def test_backend_failure_is_remote_tool_error(gate, backend, make_account):
    backend.invoke.side_effect = ToolBackendError("upstream timeout")
    inp = InvokeToolInput(account=make_account("member"), tool_id="downloader", target="url")

    with pytest.raises(RemoteToolError) as exc_info:
        await gate.invoke(inp)

    assert exc_info.value.tool_id == "downloader"
    # Never retried
    assert backend.invoke.await_count == 1


@pytest.mark.asyncio
async def test_missing_backend_is_remote_tool_error(make_account):
    gate = ToolGate(PolicyEngine(), {})
    inp = InvokeToolInput(account=make_account("member"), tool_id="qr", target="hello")

    with pytest.raises(RemoteToolError):
        await gate.invoke(inp)
