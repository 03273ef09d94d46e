from dataclasses import dataclass

from tierpanel.domain.entities import Account


@dataclass
class ListAccountsInput:
    actor: Account


@dataclass
class CreateAccountInput:
    actor: Account
    username: str
    email: str
    password: str
    role: str = "member"


@dataclass
class DeleteAccountInput:
    actor: Account
    target_id: str


@dataclass
class ChangeRoleInput:
    actor: Account
    target_id: str
    new_role: str


@dataclass
class UpdateAvatarInput:
    account: Account
    data: bytes
    filename: str
    content_type: str = "application/octet-stream"


@dataclass
class PresenceInput:
    account: Account
    online: bool


@dataclass
class AccountOutput:
    account: Account


@dataclass
class AccountListOutput:
    accounts: list[Account]
