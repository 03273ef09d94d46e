"""Unit tests for the upgrade workflow state machine."""

import asyncio
import threading
from unittest.mock import AsyncMock, MagicMock

import pytest

from tierpanel.adapters.dev_notifier import DevNotifier
from tierpanel.adapters.memory.repos import InMemoryTransactionRepo
from tierpanel.components.upgrade import (
    PAYMENT_CONFIRMATION_EVENT,
    ConfirmInput,
    SelectPackageInput,
    UpgradeWorkflow,
    UploadProofInput,
    WorkflowRegistry,
    WorkflowState,
    quote,
)
from tierpanel.domain.entities import UpgradeTransaction
from tierpanel.domain.errors import ExternalServiceError, ValidationError, WorkflowBusyError
from tierpanel.ports.notifier import DispatchResult, DispatchStatus
from tierpanel.ports.objectstore import ObjectStoreError
from tierpanel.ports.repo import RecordStoreError

PNG = b"\x89PNG\r\n\x1a\n" + b"0" * 64
PROOF = UploadProofInput(data=PNG, filename="receipt.PNG", content_type="image/png")
CONFIRM = ConfirmInput(display_name="Budi", email="budi@example.com")


@pytest.fixture
def transactions():
    return InMemoryTransactionRepo()


@pytest.fixture
def object_store():
    store = AsyncMock()
    store.put.side_effect = lambda key, data, content_type: f"/objects/{key}"
    return store


@pytest.fixture
def notifier():
    return DevNotifier()


@pytest.fixture
def make_workflow(rules, transactions, object_store, notifier, clock):
    def _make(account, **overrides):
        deps = {
            "rules": rules,
            "transactions": transactions,
            "object_store": object_store,
            "notifier": notifier,
            "clock": clock,
        }
        deps.update(overrides)
        return UpgradeWorkflow(account, **deps)

    return _make


def test_quote_comes_from_price_table(rules):
    q = quote(rules, "vip")
    assert q.amount == 50000
    assert q.currency == "IDR"

    with pytest.raises(ValidationError):
        quote(rules, "gold")


def test_starts_in_selecting(make_workflow, member):
    wf = make_workflow(member)
    assert wf.state == WorkflowState.SELECTING
    assert wf.transaction is None


def test_select_moves_to_awaiting_payment(make_workflow, member):
    wf = make_workflow(member)

    out = wf.select(SelectPackageInput(package_type="vip", payment_method="dana"))

    assert wf.state == WorkflowState.AWAITING_PAYMENT
    assert out.quote.amount == 50000
    assert out.payment_account_number == "083824299082"


def test_select_can_be_changed_before_upload(make_workflow, member):
    wf = make_workflow(member)
    wf.select(SelectPackageInput(package_type="vip", payment_method="dana"))
    out = wf.select(SelectPackageInput(package_type="premium", payment_method="qris"))

    assert wf.state == WorkflowState.AWAITING_PAYMENT
    assert out.quote.package_type == "premium"
    assert wf.transaction.package_type == "premium"


def test_select_rejects_unknown_payment_method(make_workflow, member):
    wf = make_workflow(member)
    with pytest.raises(ValidationError) as exc_info:
        wf.select(SelectPackageInput(package_type="vip", payment_method="paypal"))
    assert exc_info.value.field == "payment_method"
    assert wf.state == WorkflowState.SELECTING


def test_select_rejects_current_tier(make_workflow, premium):
    wf = make_workflow(premium)
    with pytest.raises(ValidationError):
        wf.select(SelectPackageInput(package_type="premium", payment_method="dana"))
    # Upgrading further is still allowed
    wf.select(SelectPackageInput(package_type="vip", payment_method="dana"))


@pytest.mark.asyncio
async def test_full_flow_persists_server_price(make_workflow, member, transactions, notifier):
    wf = make_workflow(member)

    wf.select(SelectPackageInput(package_type="vip", payment_method="dana"))
    tx = await wf.upload_proof(PROOF)

    assert wf.state == WorkflowState.PENDING_CONFIRMATION
    assert tx.amount == 50000
    assert tx.status == "pending_confirmation"
    assert tx.notified is False
    assert tx.storage_key.startswith(f"payments/{member.id}-")
    assert tx.storage_key.endswith(".png")
    assert transactions.get_by_id(tx.id) == tx

    out = await wf.confirm(CONFIRM)

    assert out.dispatched is True
    assert wf.state == WorkflowState.NOTIFIED
    assert out.transaction.notified is True
    assert transactions.get_by_id(tx.id).notified is True

    event = notifier.get_last_event()
    assert event.event_type == PAYMENT_CONFIRMATION_EVENT
    assert event.payload["package"] == "VIP"
    assert event.payload["amount"] == 50000
    assert event.payload["name"] == "Budi"
    assert event.payload["transaction_id"] == str(tx.id)


@pytest.mark.asyncio
async def test_forged_client_amount_is_ignored(make_workflow, member, caplog):
    wf = make_workflow(member)

    out = wf.select(
        SelectPackageInput(package_type="vip", payment_method="gopay", claimed_amount=1)
    )
    tx = await wf.upload_proof(PROOF)

    assert out.quote.amount == 50000
    assert tx.amount == 50000
    assert "Ignoring client amount" in caplog.text


@pytest.mark.asyncio
async def test_confirm_twice_dispatches_once(make_workflow, member, notifier):
    wf = make_workflow(member)
    wf.select(SelectPackageInput(package_type="premium", payment_method="qris"))
    await wf.upload_proof(PROOF)

    first = await wf.confirm(CONFIRM)
    second = await wf.confirm(CONFIRM)

    assert first.dispatched is True
    assert second.dispatched is False
    assert second.transaction.id == first.transaction.id
    assert notifier.event_count == 1


@pytest.mark.asyncio
async def test_upload_failure_keeps_state_and_retry_inserts_once(
    make_workflow, member, transactions, object_store
):
    wf = make_workflow(member)
    wf.select(SelectPackageInput(package_type="vip", payment_method="dana"))

    object_store.put.side_effect = ObjectStoreError("disk full")
    with pytest.raises(ExternalServiceError) as exc_info:
        await wf.upload_proof(PROOF)

    assert exc_info.value.service == "object_store"
    assert wf.state == WorkflowState.AWAITING_PAYMENT
    assert transactions.count() == 0

    object_store.put.side_effect = lambda key, data, content_type: f"/objects/{key}"
    tx = await wf.upload_proof(PROOF)

    assert wf.state == WorkflowState.PENDING_CONFIRMATION
    assert transactions.count() == 1
    assert transactions.get_by_id(tx.id) is not None


@pytest.mark.asyncio
async def test_invalid_proof_rejected(make_workflow, member, object_store):
    wf = make_workflow(member)
    wf.select(SelectPackageInput(package_type="vip", payment_method="dana"))

    with pytest.raises(ValidationError):
        await wf.upload_proof(UploadProofInput(data=b"x", filename="receipt.exe"))
    with pytest.raises(ValidationError):
        await wf.upload_proof(UploadProofInput(data=b"", filename="receipt.png"))

    object_store.put.assert_not_called()
    assert wf.state == WorkflowState.AWAITING_PAYMENT


@pytest.mark.asyncio
async def test_record_store_failure_on_upload(make_workflow, member, object_store, caplog):
    repo = MagicMock()
    repo.insert.side_effect = RecordStoreError("locked")
    wf = make_workflow(member, transactions=repo)
    wf.select(SelectPackageInput(package_type="vip", payment_method="dana"))

    with pytest.raises(ExternalServiceError) as exc_info:
        await wf.upload_proof(PROOF)

    assert exc_info.value.service == "record_store"
    assert wf.state == WorkflowState.AWAITING_PAYMENT
    # The uploaded proof is left behind; its key must be traceable
    key = object_store.put.call_args.args[0]
    assert key in caplog.text


@pytest.mark.asyncio
async def test_dispatch_failure_leaves_pending(make_workflow, member, transactions):
    failing = AsyncMock()
    failing.send.return_value = DispatchResult(status=DispatchStatus.FAILED, error="timeout")
    wf = make_workflow(member, notifier=failing)
    wf.select(SelectPackageInput(package_type="vip", payment_method="dana"))
    tx = await wf.upload_proof(PROOF)

    with pytest.raises(ExternalServiceError) as exc_info:
        await wf.confirm(CONFIRM)

    assert exc_info.value.service == "notifier"
    assert wf.state == WorkflowState.PENDING_CONFIRMATION
    assert transactions.get_by_id(tx.id).notified is False

    # Retry once the relay is back
    failing.send.return_value = DispatchResult(status=DispatchStatus.SENT, message_id="42")
    out = await wf.confirm(CONFIRM)
    assert out.dispatched is True
    assert failing.send.await_count == 2


@pytest.mark.asyncio
async def test_persist_failure_after_dispatch_never_redispatches(
    make_workflow, member, transactions, notifier
):
    wf = make_workflow(member)
    wf.select(SelectPackageInput(package_type="vip", payment_method="dana"))
    await wf.upload_proof(PROOF)

    real_update = transactions.update
    transactions.update = MagicMock(side_effect=RecordStoreError("locked"))

    with pytest.raises(ExternalServiceError):
        await wf.confirm(CONFIRM)
    assert notifier.event_count == 1
    assert wf.state == WorkflowState.PENDING_CONFIRMATION

    transactions.update = real_update
    out = await wf.confirm(CONFIRM)

    assert out.dispatched is False
    assert out.transaction.notified is True
    assert wf.state == WorkflowState.NOTIFIED
    assert notifier.event_count == 1


@pytest.mark.asyncio
async def test_confirm_validates_contact(make_workflow, member, notifier):
    wf = make_workflow(member)
    wf.select(SelectPackageInput(package_type="vip", payment_method="dana"))
    await wf.upload_proof(PROOF)

    with pytest.raises(ValidationError) as exc_info:
        await wf.confirm(ConfirmInput(display_name="  ", email="budi@example.com"))
    assert exc_info.value.field == "display_name"

    with pytest.raises(ValidationError) as exc_info:
        await wf.confirm(ConfirmInput(display_name="Budi", email="not-an-email"))
    assert exc_info.value.field == "email"

    assert notifier.event_count == 0


@pytest.mark.asyncio
async def test_states_cannot_be_skipped(make_workflow, member):
    wf = make_workflow(member)

    with pytest.raises(ValidationError):
        await wf.upload_proof(PROOF)
    with pytest.raises(ValidationError):
        await wf.confirm(CONFIRM)

    wf.select(SelectPackageInput(package_type="vip", payment_method="dana"))
    with pytest.raises(ValidationError):
        await wf.confirm(CONFIRM)

    await wf.upload_proof(PROOF)
    with pytest.raises(ValidationError):
        await wf.upload_proof(PROOF)
    with pytest.raises(ValidationError):
        wf.select(SelectPackageInput(package_type="premium", payment_method="dana"))


@pytest.mark.asyncio
async def test_concurrent_confirm_is_rejected_while_in_flight(make_workflow, member):
    release = asyncio.Event()

    async def slow_send(event_type, payload):
        await release.wait()
        return DispatchResult(status=DispatchStatus.SENT, message_id="1")

    slow = AsyncMock()
    slow.send.side_effect = slow_send
    wf = make_workflow(member, notifier=slow)
    wf.select(SelectPackageInput(package_type="vip", payment_method="dana"))
    await wf.upload_proof(PROOF)

    first = asyncio.create_task(wf.confirm(CONFIRM))
    await asyncio.sleep(0)
    assert wf.busy is True

    with pytest.raises(WorkflowBusyError):
        await wf.confirm(CONFIRM)

    release.set()
    out = await first
    assert out.dispatched is True
    assert wf.busy is False
    assert slow.send.await_count == 1



def test_concurrent_select_from_threads_is_rejected(make_workflow, member, clock):
    entered = threading.Event()
    release = threading.Event()

    class BlockingClock:
        def now_utc(self):
            entered.set()
            release.wait(timeout=5)
            return clock.now_utc()

    wf = make_workflow(member, clock=BlockingClock())
    results = []
    worker = threading.Thread(
        target=lambda: results.append(
            wf.select(SelectPackageInput(package_type="vip", payment_method="dana"))
        )
    )
    worker.start()
    assert entered.wait(timeout=5)

    with pytest.raises(WorkflowBusyError):
        wf.select(SelectPackageInput(package_type="premium", payment_method="dana"))

    release.set()
    worker.join(timeout=5)
    assert results[0].quote.package_type == "vip"
    assert wf.busy is False


@pytest.mark.asyncio
async def test_resume_pending_transaction(
    make_workflow, rules, member, transactions, notifier, clock, object_store
):
    wf = make_workflow(member)
    wf.select(SelectPackageInput(package_type="premium", payment_method="dana"))
    tx = await wf.upload_proof(PROOF)

    resumed = UpgradeWorkflow.resume(
        member, tx, rules, transactions, object_store, notifier, clock
    )
    assert resumed.state == WorkflowState.PENDING_CONFIRMATION

    with pytest.raises(ValidationError, match="already uploaded"):
        await resumed.upload_proof(PROOF)

    out = await resumed.confirm(CONFIRM)
    assert out.dispatched is True


def test_resume_rejects_other_account(
    rules, member, premium, transactions, notifier, clock, object_store
):
    tx = UpgradeTransaction(
        account_id=premium.id,
        package_type="vip",
        amount=50000,
        payment_method="dana",
        status="pending_confirmation",
    )
    with pytest.raises(ValidationError):
        UpgradeWorkflow.resume(member, tx, rules, transactions, object_store, notifier, clock)


def test_resume_notified_transaction(
    rules, member, transactions, notifier, clock, object_store
):
    tx = UpgradeTransaction(
        account_id=member.id,
        package_type="vip",
        amount=50000,
        payment_method="dana",
        status="notified",
        notified=True,
    )
    wf = UpgradeWorkflow.resume(member, tx, rules, transactions, object_store, notifier, clock)
    assert wf.state == WorkflowState.NOTIFIED


class TestWorkflowRegistry:
    def test_get_or_start_reuses_live_workflow(self, make_workflow, member):
        registry = WorkflowRegistry()
        first = registry.get_or_start(member, make_workflow)
        second = registry.get_or_start(member, make_workflow)
        assert first is second

    @pytest.mark.asyncio
    async def test_notified_workflow_is_replaced(self, make_workflow, member):
        registry = WorkflowRegistry()
        wf = registry.get_or_start(member, make_workflow)
        wf.select(SelectPackageInput(package_type="vip", payment_method="dana"))
        await wf.upload_proof(PROOF)
        await wf.confirm(CONFIRM)

        fresh = registry.get_or_start(member, make_workflow)
        assert fresh is not wf
        assert fresh.state == WorkflowState.SELECTING

    def test_discard(self, make_workflow, member):
        registry = WorkflowRegistry()
        registry.get_or_start(member, make_workflow)
        registry.discard(member.id)
        assert registry.get(member.id) is None
        # Discarding twice is harmless
        registry.discard(member.id)
