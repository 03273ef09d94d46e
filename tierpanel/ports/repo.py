from datetime import datetime
from typing import Protocol
from uuid import UUID

from tierpanel.domain.entities import Account, BroadcastMessage, UpgradeTransaction


class RecordStoreError(Exception):
    """Raised by record store adapters when a read or write fails."""


class AccountRepoPort(Protocol):
    def get_by_id(self, account_id: UUID) -> Account | None:
        ...

    def get_by_email(self, email: str) -> Account | None:
        """Case-insensitive lookup."""
        ...

    def list_by_roles(self, roles: list[str]) -> list[Account]:
        ...

    def save(self, account: Account) -> None:
        ...

    def update_avatar(self, account_id: UUID, avatar_url: str) -> Account | None:
        """Set only the avatar column; returns the fresh record."""
        ...

    def update_presence(
        self, account_id: UUID, online: bool, last_active_at: datetime
    ) -> Account | None:
        """Set only the presence columns; returns the fresh record."""
        ...

    def delete(self, account_id: UUID) -> None:
        ...


class TransactionRepoPort(Protocol):
    def get_by_id(self, tx_id: UUID) -> UpgradeTransaction | None:
        ...

    def insert(self, tx: UpgradeTransaction) -> UpgradeTransaction:
        ...

    def update(self, tx: UpgradeTransaction) -> UpgradeTransaction:
        ...

    def list_by_account(self, account_id: UUID) -> list[UpgradeTransaction]:
        ...

    def list_by_status(self, statuses: list[str]) -> list[UpgradeTransaction]:
        ...


class BroadcastRepoPort(Protocol):
    def insert(self, message: BroadcastMessage) -> BroadcastMessage:
        ...

    def list_recent(self, limit: int) -> list[BroadcastMessage]:
        ...
