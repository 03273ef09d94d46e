from dataclasses import dataclass

from tierpanel.domain.entities import Account, BroadcastMessage


@dataclass
class SendBroadcastInput:
    account: Account
    message: str


@dataclass
class BroadcastOutput:
    message: BroadcastMessage


@dataclass
class BroadcastListOutput:
    messages: list[BroadcastMessage]
