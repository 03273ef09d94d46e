from fastapi import APIRouter, Depends, File, Response, UploadFile

from tierpanel.api.deps import (
    get_clock,
    get_current_account,
    get_notifier,
    get_object_store,
    get_rules,
    get_transaction_repo,
    get_workflow_registry,
)
from tierpanel.api.schemas import (
    ConfirmRequest,
    ConfirmResponse,
    QuoteResponse,
    SelectionResponse,
    SelectPackageRequest,
    TransactionResponse,
)
from tierpanel.components.upgrade import (
    ConfirmInput,
    SelectPackageInput,
    UploadProofInput,
    UpgradeWorkflow,
    WorkflowRegistry,
    quote,
)
from tierpanel.domain.entities import Account, UpgradeTransaction
from tierpanel.domain.errors import NotFoundError, ValidationError
from tierpanel.ports.clock import ClockPort
from tierpanel.ports.notifier import NotifierPort
from tierpanel.ports.objectstore import ObjectStorePort
from tierpanel.ports.repo import TransactionRepoPort
from tierpanel.rules.models import Rules

router = APIRouter()


class WorkflowDeps:
    def __init__(
        self,
        rules: Rules = Depends(get_rules),
        transactions: TransactionRepoPort = Depends(get_transaction_repo),
        object_store: ObjectStorePort = Depends(get_object_store),
        notifier: NotifierPort = Depends(get_notifier),
        clock: ClockPort = Depends(get_clock),
    ) -> None:
        self.rules = rules
        self.transactions = transactions
        self.object_store = object_store
        self.notifier = notifier
        self.clock = clock

    def start(self, account: Account) -> UpgradeWorkflow:
        return UpgradeWorkflow(
            account, self.rules, self.transactions, self.object_store, self.notifier, self.clock
        )

    def resume(self, account: Account, tx: UpgradeTransaction) -> UpgradeWorkflow:
        return UpgradeWorkflow.resume(
            account,
            tx,
            self.rules,
            self.transactions,
            self.object_store,
            self.notifier,
            self.clock,
        )


def _tx_response(tx: UpgradeTransaction) -> TransactionResponse:
    return TransactionResponse(**tx.model_dump())


@router.get("/quote/{package_type}", response_model=QuoteResponse)
def get_quote(package_type: str, rules: Rules = Depends(get_rules)) -> QuoteResponse:
    q = quote(rules, package_type)
    return QuoteResponse(package_type=q.package_type, amount=q.amount, currency=q.currency)


@router.post("/select", response_model=SelectionResponse)
async def select_package(
    req: SelectPackageRequest,
    account: Account = Depends(get_current_account),
    registry: WorkflowRegistry = Depends(get_workflow_registry),
    deps: WorkflowDeps = Depends(),
) -> SelectionResponse:
    workflow = registry.get_or_start(account, deps.start)
    out = workflow.select(
        SelectPackageInput(
            package_type=req.package_type,
            payment_method=req.payment_method,
            claimed_amount=req.amount,
        )
    )
    return SelectionResponse(
        state=out.state.value,
        quote=QuoteResponse(
            package_type=out.quote.package_type,
            amount=out.quote.amount,
            currency=out.quote.currency,
        ),
        payment_method=out.payment_method,
        payment_account_number=out.payment_account_number,
    )


@router.post("/proof", response_model=TransactionResponse, status_code=201)
async def upload_proof(
    file: UploadFile = File(...),
    account: Account = Depends(get_current_account),
    registry: WorkflowRegistry = Depends(get_workflow_registry),
) -> TransactionResponse:
    workflow = registry.get(account.id)
    if workflow is None:
        raise ValidationError("Choose a package and payment method first")

    data = await file.read()
    tx = await workflow.upload_proof(
        UploadProofInput(
            data=data,
            filename=file.filename or "",
            content_type=file.content_type or "application/octet-stream",
        )
    )
    return _tx_response(tx)


@router.post("/confirm", response_model=ConfirmResponse)
async def confirm_payment(
    req: ConfirmRequest,
    account: Account = Depends(get_current_account),
    registry: WorkflowRegistry = Depends(get_workflow_registry),
    deps: WorkflowDeps = Depends(),
) -> ConfirmResponse:
    workflow = registry.get(account.id)
    current = workflow.transaction if workflow else None

    if req.transaction_id is not None and (current is None or current.id != req.transaction_id):
        tx = deps.transactions.get_by_id(req.transaction_id)
        if tx is None or tx.account_id != account.id:
            raise NotFoundError("Transaction", req.transaction_id)
        workflow = deps.resume(account, tx)
        registry.put(workflow)

    if workflow is None:
        raise ValidationError("Upload proof of payment first")

    out = await workflow.confirm(ConfirmInput(display_name=req.display_name, email=req.email))
    return ConfirmResponse(transaction=_tx_response(out.transaction), dispatched=out.dispatched)


@router.get("/transactions", response_model=list[TransactionResponse])
def list_transactions(
    account: Account = Depends(get_current_account),
    transactions: TransactionRepoPort = Depends(get_transaction_repo),
) -> list[TransactionResponse]:
    return [_tx_response(tx) for tx in transactions.list_by_account(account.id)]


@router.delete("/session", status_code=204)
def reset_workflow(
    account: Account = Depends(get_current_account),
    registry: WorkflowRegistry = Depends(get_workflow_registry),
) -> Response:
    """Abandon the in-progress selection."""
    registry.discard(account.id)
    return Response(status_code=204)
