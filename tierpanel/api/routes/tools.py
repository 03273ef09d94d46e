from fastapi import APIRouter, Depends

from tierpanel.api.deps import get_current_account, get_policy, get_tool_gate
from tierpanel.api.schemas import InvokeToolRequest, InvokeToolResponse, ToolResponse
from tierpanel.components.tool_gate import InvokeToolInput, ToolGate
from tierpanel.domain.catalog import visible_tools
from tierpanel.domain.entities import Account
from tierpanel.domain.policy import PolicyEngine

router = APIRouter()


@router.get("", response_model=list[ToolResponse])
def list_tools(
    account: Account = Depends(get_current_account),
    policy: PolicyEngine = Depends(get_policy),
) -> list[ToolResponse]:
    """Full catalog; tools above the account's tier are flagged as locked."""
    return [
        ToolResponse(
            id=item.tool.id,
            name=item.tool.name,
            category=item.tool.category,
            required_role=item.tool.required_role,
            description=item.tool.description,
            route=item.tool.route,
            locked=item.locked,
        )
        for item in visible_tools(account, policy)
    ]


@router.post("/{tool_id}/invoke", response_model=InvokeToolResponse)
async def invoke_tool(
    tool_id: str,
    req: InvokeToolRequest,
    account: Account = Depends(get_current_account),
    gate: ToolGate = Depends(get_tool_gate),
) -> InvokeToolResponse:
    out = await gate.invoke(InvokeToolInput(account=account, tool_id=tool_id, target=req.target))
    return InvokeToolResponse(tool_id=out.tool_id, target=out.target, result=out.result)
