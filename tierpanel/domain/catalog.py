"""
Canonical tool catalog.

One table serves both the tool listing and the policy checks; the policy
engine only reads `required_role`.
"""

from __future__ import annotations

from dataclasses import dataclass

from tierpanel.domain.entities import Account, ToolDescriptor
from tierpanel.domain.errors import ValidationError
from tierpanel.domain.policy import PolicyEngine

TOOL_CATALOG: tuple[ToolDescriptor, ...] = (
    ToolDescriptor(
        id="downloader",
        name="Video Downloader",
        category="downloader",
        required_role="member",
        description="Download a video from a supported platform URL",
        route="/tools/downloader",
    ),
    ToolDescriptor(
        id="qr",
        name="QR Generator",
        category="qr",
        required_role="member",
        description="Generate a QR code for text or a URL",
        route="/tools/qr",
    ),
    ToolDescriptor(
        id="source",
        name="Source Viewer",
        category="source",
        required_role="premium",
        description="Fetch the raw page source of a website",
        route="/tools/source",
    ),
    ToolDescriptor(
        id="image",
        name="Image Tools",
        category="image",
        required_role="premium",
        description="Compress, resize and convert images",
        route="/tools/image",
    ),
    ToolDescriptor(
        id="batch-downloader",
        name="Batch Downloader",
        category="downloader",
        required_role="vip",
        description="Download every video of a playlist URL",
        route="/tools/batch-downloader",
    ),
    ToolDescriptor(
        id="image-batch",
        name="Image Batch",
        category="image",
        required_role="vip",
        description="Convert a whole album of images at once",
        route="/tools/image-batch",
    ),
)

_BY_ID: dict[str, ToolDescriptor] = {tool.id: tool for tool in TOOL_CATALOG}


def get_tool(tool_id: str) -> ToolDescriptor:
    tool = _BY_ID.get(tool_id)
    if tool is None:
        raise ValidationError(f"Unknown tool: {tool_id}", field="tool_id")
    return tool


@dataclass(frozen=True)
class ToolListing:
    tool: ToolDescriptor
    locked: bool


def visible_tools(
    account: Account,
    policy: PolicyEngine,
    catalog: tuple[ToolDescriptor, ...] = TOOL_CATALOG,
) -> list[ToolListing]:
    """Every tool with a lock flag; locked tools stay visible as upgrade prompts."""
    return [
        ToolListing(tool=tool, locked=not policy.can_access_tool(account, tool))
        for tool in catalog
    ]
