from fastapi import APIRouter, Depends

from tierpanel.api.deps import get_broadcast_repo, get_clock, get_current_account, get_policy
from tierpanel.api.schemas import BroadcastRequest, BroadcastResponse
from tierpanel.components.broadcast import (
    SendBroadcastInput,
    run_list_recent,
    run_send_broadcast,
)
from tierpanel.domain.entities import Account
from tierpanel.domain.policy import PolicyEngine
from tierpanel.ports.clock import ClockPort
from tierpanel.ports.repo import BroadcastRepoPort

router = APIRouter()


@router.get("", response_model=list[BroadcastResponse])
def list_broadcasts(
    limit: int = 20,
    account: Account = Depends(get_current_account),
    repo: BroadcastRepoPort = Depends(get_broadcast_repo),
) -> list[BroadcastResponse]:
    result = run_list_recent(repo, limit)
    return [BroadcastResponse(**m.model_dump()) for m in result.messages]


@router.post("", response_model=BroadcastResponse, status_code=201)
def send_broadcast(
    req: BroadcastRequest,
    account: Account = Depends(get_current_account),
    repo: BroadcastRepoPort = Depends(get_broadcast_repo),
    policy: PolicyEngine = Depends(get_policy),
    clock: ClockPort = Depends(get_clock),
) -> BroadcastResponse:
    """Send an announcement to every account (VIP or admin)."""
    result = run_send_broadcast(
        SendBroadcastInput(account=account, message=req.message),
        repo=repo,
        policy=policy,
        clock=clock,
    )
    return BroadcastResponse(**result.message.model_dump())
