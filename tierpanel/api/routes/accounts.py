from fastapi import APIRouter, Depends, File, Response, UploadFile

from tierpanel.api.deps import (
    get_account_repo,
    get_clock,
    get_current_account,
    get_identity,
    get_object_store,
    get_policy,
    get_rules,
)
from tierpanel.api.schemas import AccountCreateRequest, AccountResponse, RoleChangeRequest
from tierpanel.components.accounts import (
    ChangeRoleInput,
    CreateAccountInput,
    DeleteAccountInput,
    ListAccountsInput,
    PresenceInput,
    UpdateAvatarInput,
    run_change_role,
    run_create_account,
    run_delete_account,
    run_list_manageable,
    run_touch_presence,
    run_update_avatar,
)
from tierpanel.domain.entities import Account
from tierpanel.domain.policy import PolicyEngine
from tierpanel.ports.clock import ClockPort
from tierpanel.ports.identity import IdentityProviderPort
from tierpanel.ports.objectstore import ObjectStorePort
from tierpanel.ports.repo import AccountRepoPort
from tierpanel.rules.models import Rules

router = APIRouter()


def _response(account: Account) -> AccountResponse:
    return AccountResponse(**account.model_dump())


@router.get("/me", response_model=AccountResponse)
def get_me(account: Account = Depends(get_current_account)) -> AccountResponse:
    return _response(account)


@router.get("", response_model=list[AccountResponse])
def list_accounts(
    account: Account = Depends(get_current_account),
    repo: AccountRepoPort = Depends(get_account_repo),
    policy: PolicyEngine = Depends(get_policy),
) -> list[AccountResponse]:
    """Accounts strictly below the caller's tier (all accounts for admins)."""
    result = run_list_manageable(ListAccountsInput(actor=account), repo=repo, policy=policy)
    return [_response(a) for a in result.accounts]


@router.post("", response_model=AccountResponse, status_code=201)
def create_account(
    req: AccountCreateRequest,
    account: Account = Depends(get_current_account),
    repo: AccountRepoPort = Depends(get_account_repo),
    identity: IdentityProviderPort = Depends(get_identity),
    policy: PolicyEngine = Depends(get_policy),
    clock: ClockPort = Depends(get_clock),
) -> AccountResponse:
    inp = CreateAccountInput(
        actor=account,
        username=req.username,
        email=req.email,
        password=req.password,
        role=req.role,
    )
    result = run_create_account(inp, repo=repo, identity=identity, policy=policy, clock=clock)
    return _response(result.account)


@router.delete("/{account_id}", status_code=204)
def delete_account(
    account_id: str,
    account: Account = Depends(get_current_account),
    repo: AccountRepoPort = Depends(get_account_repo),
    policy: PolicyEngine = Depends(get_policy),
) -> Response:
    run_delete_account(
        DeleteAccountInput(actor=account, target_id=account_id), repo=repo, policy=policy
    )
    return Response(status_code=204)


@router.put("/{account_id}/role", response_model=AccountResponse)
def change_role(
    account_id: str,
    req: RoleChangeRequest,
    account: Account = Depends(get_current_account),
    repo: AccountRepoPort = Depends(get_account_repo),
    policy: PolicyEngine = Depends(get_policy),
) -> AccountResponse:
    inp = ChangeRoleInput(actor=account, target_id=account_id, new_role=req.role)
    result = run_change_role(inp, repo=repo, policy=policy)
    return _response(result.account)


@router.post("/me/avatar", response_model=AccountResponse)
async def upload_avatar(
    file: UploadFile = File(...),
    account: Account = Depends(get_current_account),
    repo: AccountRepoPort = Depends(get_account_repo),
    object_store: ObjectStorePort = Depends(get_object_store),
    rules: Rules = Depends(get_rules),
    clock: ClockPort = Depends(get_clock),
) -> AccountResponse:
    data = await file.read()
    inp = UpdateAvatarInput(
        account=account,
        data=data,
        filename=file.filename or "",
        content_type=file.content_type or "application/octet-stream",
    )
    result = await run_update_avatar(
        inp, repo=repo, object_store=object_store, uploads=rules.uploads, clock=clock
    )
    return _response(result.account)


@router.post("/me/presence", response_model=AccountResponse)
def touch_presence(
    online: bool = True,
    account: Account = Depends(get_current_account),
    repo: AccountRepoPort = Depends(get_account_repo),
    clock: ClockPort = Depends(get_clock),
) -> AccountResponse:
    result = run_touch_presence(PresenceInput(account=account, online=online), repo, clock)
    return _response(result.account)
