"""
Upgrade component.

State machine turning a purchase intent into a pending, notified transaction:

    SELECTING -> AWAITING_PAYMENT -> PENDING_CONFIRMATION -> NOTIFIED

Invariants:
- The persisted amount always comes from the price table, never from the client
- No state may be skipped; out-of-order calls raise ValidationError
- At most one notification is dispatched per transaction
- A failed upload or dispatch leaves the state unchanged and is safe to retry
- Only one transition may be in flight at a time (WorkflowBusyError otherwise)

Approval of the transaction (changing the account's role) happens out of band.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, cast
from uuid import UUID

from tierpanel.domain.entities import Account, PackageType, UpgradeTransaction
from tierpanel.domain.errors import ExternalServiceError, ValidationError, WorkflowBusyError
from tierpanel.domain.roles import at_least
from tierpanel.domain.uploads import object_key, validate_upload
from tierpanel.rules.models import Rules

from .models import (
    PAYMENT_CONFIRMATION_EVENT,
    ConfirmInput,
    ConfirmOutput,
    Quote,
    SelectionOutput,
    SelectPackageInput,
    UploadProofInput,
    WorkflowState,
)
from .ports import (
    ClockPort,
    NotifierPort,
    ObjectStoreError,
    ObjectStorePort,
    RecordStoreError,
    TransactionRepoPort,
)

logger = logging.getLogger(__name__)

PACKAGES: tuple[PackageType, ...] = ("premium", "vip")


def quote(rules: Rules, package_type: str) -> Quote:
    """Price of a package from the static price table."""
    if package_type not in PACKAGES:
        raise ValidationError(f"Unknown package: {package_type}", field="package_type")
    return Quote(
        package_type=cast(PackageType, package_type),
        amount=rules.price_of(package_type),
        currency=rules.pricing.currency,
    )


class UpgradeWorkflow:
    def __init__(
        self,
        account: Account,
        rules: Rules,
        transactions: TransactionRepoPort,
        object_store: ObjectStorePort,
        notifier: NotifierPort,
        clock: ClockPort,
    ) -> None:
        self.account = account
        self.rules = rules
        self.transactions = transactions
        self.object_store = object_store
        self.notifier = notifier
        self.clock = clock

        self._state = WorkflowState.SELECTING
        self._busy = False
        # Makes the busy check-and-set atomic when sync routes run in a threadpool
        self._guard = threading.Lock()
        self._draft: UpgradeTransaction | None = None
        self._transaction: UpgradeTransaction | None = None
        # Set as soon as the dispatcher acknowledges, before the record is saved
        self._dispatched = False

    @classmethod
    def resume(
        cls,
        account: Account,
        transaction: UpgradeTransaction,
        rules: Rules,
        transactions: TransactionRepoPort,
        object_store: ObjectStorePort,
        notifier: NotifierPort,
        clock: ClockPort,
    ) -> UpgradeWorkflow:
        """Rebuild a workflow from a persisted transaction."""
        if transaction.account_id != account.id:
            raise ValidationError("Transaction belongs to another account")

        workflow = cls(account, rules, transactions, object_store, notifier, clock)
        workflow._transaction = transaction
        if transaction.notified or transaction.status == "notified":
            workflow._state = WorkflowState.NOTIFIED
            workflow._dispatched = True
        elif transaction.status == "pending_confirmation":
            workflow._state = WorkflowState.PENDING_CONFIRMATION
        else:
            raise ValidationError(f"Transaction cannot be resumed from '{transaction.status}'")
        return workflow

    # --- State ---

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def transaction(self) -> UpgradeTransaction | None:
        return self._transaction or self._draft

    @contextmanager
    def _in_flight(self) -> Iterator[None]:
        with self._guard:
            if self._busy:
                raise WorkflowBusyError()
            self._busy = True
        try:
            yield
        finally:
            self._busy = False

    # --- Transitions ---

    def select(self, inp: SelectPackageInput) -> SelectionOutput:
        """SELECTING -> AWAITING_PAYMENT. Choice may be changed until proof is uploaded."""
        with self._in_flight():
            if self._state not in (WorkflowState.SELECTING, WorkflowState.AWAITING_PAYMENT):
                raise ValidationError("Package can no longer be changed for this transaction")

            package = quote(self.rules, inp.package_type)
            if not self.account.is_admin and at_least(self.account.role, package.package_type):
                raise ValidationError(
                    f"Account already has {self.account.role} tier",
                    field="package_type",
                )

            method = self.rules.payment_method(inp.payment_method)
            if method is None:
                raise ValidationError(
                    f"Unknown payment method: {inp.payment_method}", field="payment_method"
                )

            if inp.claimed_amount is not None and inp.claimed_amount != package.amount:
                logger.warning(
                    "Ignoring client amount %s for %s (price %s) from account %s",
                    inp.claimed_amount,
                    package.package_type,
                    package.amount,
                    self.account.id,
                )

            now = self.clock.now_utc()
            self._draft = UpgradeTransaction(
                account_id=self.account.id,
                package_type=package.package_type,
                amount=package.amount,
                payment_method=method.id,
                status="awaiting_proof",
                created_at=now,
                updated_at=now,
            )
            self._state = WorkflowState.AWAITING_PAYMENT

            return SelectionOutput(
                state=self._state,
                quote=package,
                payment_method=method.id,
                payment_account_number=method.account_number,
            )

    async def upload_proof(self, inp: UploadProofInput) -> UpgradeTransaction:
        """AWAITING_PAYMENT -> PENDING_CONFIRMATION. Persists the transaction."""
        with self._in_flight():
            if self._state in (WorkflowState.PENDING_CONFIRMATION, WorkflowState.NOTIFIED):
                raise ValidationError("Proof of payment was already uploaded")
            if self._state == WorkflowState.SELECTING or self._draft is None:
                raise ValidationError("Choose a package and payment method first")

            ext = validate_upload(inp.data, inp.filename, self.rules.uploads)
            now = self.clock.now_utc()
            key = object_key(self.rules.uploads.proof_prefix, self.account.id, now, ext)

            try:
                proof_ref = await self.object_store.put(key, inp.data, inp.content_type)
            except ObjectStoreError as exc:
                logger.warning("Proof upload failed for account %s: %s", self.account.id, exc)
                raise ExternalServiceError("object_store", "Proof upload failed") from exc

            tx = self._draft.model_copy(
                update={
                    # Re-derived at persist time; the draft is never trusted
                    "amount": self.rules.price_of(self._draft.package_type),
                    "proof_ref": proof_ref,
                    "storage_key": key,
                    "status": "pending_confirmation",
                    "notified": False,
                    "updated_at": now,
                }
            )
            try:
                saved = self.transactions.insert(tx)
            except RecordStoreError as exc:
                logger.error(
                    "Could not persist transaction %s: %s (orphaned proof object %s)",
                    tx.id,
                    exc,
                    key,
                )
                raise ExternalServiceError("record_store", "Could not save transaction") from exc

            self._transaction = saved
            self._state = WorkflowState.PENDING_CONFIRMATION
            logger.info(
                "Transaction %s pending confirmation (%s, %s)",
                saved.id,
                saved.package_type,
                saved.amount,
            )
            return saved

    async def confirm(self, inp: ConfirmInput) -> ConfirmOutput:
        """PENDING_CONFIRMATION -> NOTIFIED. Idempotent once notified."""
        with self._in_flight():
            if self._state in (WorkflowState.SELECTING, WorkflowState.AWAITING_PAYMENT):
                raise ValidationError("Upload proof of payment first")

            tx = self._transaction
            assert tx is not None

            if self._state == WorkflowState.NOTIFIED:
                return ConfirmOutput(transaction=tx, dispatched=False)

            if self._dispatched:
                # Acknowledged earlier but the record was not saved; only re-persist
                saved = self._mark_notified(tx)
                return ConfirmOutput(transaction=saved, dispatched=False)

            name = inp.display_name.strip()
            email = inp.email.strip()
            if not name:
                raise ValidationError("Name is required", field="display_name")
            if not email or "@" not in email:
                raise ValidationError("A valid email is required", field="email")

            result = await self.notifier.send(
                PAYMENT_CONFIRMATION_EVENT, self._payload(tx, name, email)
            )
            if not result.acknowledged:
                logger.warning(
                    "Notification for transaction %s failed: %s", tx.id, result.error
                )
                raise ExternalServiceError("notifier", result.error or "Dispatch failed")

            self._dispatched = True
            saved = self._mark_notified(tx)
            return ConfirmOutput(transaction=saved, dispatched=True)

    # --- Helpers ---

    def _mark_notified(self, tx: UpgradeTransaction) -> UpgradeTransaction:
        updated = tx.model_copy(
            update={"notified": True, "status": "notified", "updated_at": self.clock.now_utc()}
        )
        try:
            saved = self.transactions.update(updated)
        except RecordStoreError as exc:
            logger.error("Could not mark transaction %s notified: %s", tx.id, exc)
            raise ExternalServiceError("record_store", "Could not update transaction") from exc

        self._transaction = saved
        self._state = WorkflowState.NOTIFIED
        logger.info("Transaction %s notified", saved.id)
        return saved

    def _payload(self, tx: UpgradeTransaction, name: str, email: str) -> dict[str, Any]:
        return {
            "transaction_id": str(tx.id),
            "name": name,
            "email": email,
            "package": tx.package_type.upper(),
            "amount": tx.amount,
            "currency": self.rules.pricing.currency,
            "payment_method": tx.payment_method,
        }


WorkflowFactory = Callable[[Account], UpgradeWorkflow]


class WorkflowRegistry:
    """
    One live workflow per account, so the steps can span several requests.
    """

    def __init__(self) -> None:
        self._workflows: dict[UUID, UpgradeWorkflow] = {}

    def get(self, account_id: UUID) -> UpgradeWorkflow | None:
        return self._workflows.get(account_id)

    def get_or_start(self, account: Account, factory: WorkflowFactory) -> UpgradeWorkflow:
        workflow = self._workflows.get(account.id)
        if workflow is None or workflow.state == WorkflowState.NOTIFIED:
            workflow = factory(account)
            self._workflows[account.id] = workflow
        else:
            # Keep the freshest snapshot for policy-relevant checks
            workflow.account = account
        return workflow

    def put(self, workflow: UpgradeWorkflow) -> None:
        self._workflows[workflow.account.id] = workflow

    def discard(self, account_id: UUID) -> None:
        workflow = self._workflows.get(account_id)
        if workflow is not None and workflow.busy:
            raise WorkflowBusyError()
        self._workflows.pop(account_id, None)
