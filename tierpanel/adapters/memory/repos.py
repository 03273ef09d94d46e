"""In-memory record store adapters.

Implement the repo ports for tests and single-process development.
"""

from datetime import datetime
from uuid import UUID

from tierpanel.domain.entities import Account, BroadcastMessage, UpgradeTransaction
from tierpanel.ports.repo import RecordStoreError


class InMemoryAccountRepo:
    def __init__(self, accounts: list[Account] | None = None) -> None:
        self._accounts: dict[UUID, Account] = {a.id: a for a in accounts or []}

    def get_by_id(self, account_id: UUID) -> Account | None:
        return self._accounts.get(account_id)

    def get_by_email(self, email: str) -> Account | None:
        key = email.strip().lower()
        for account in self._accounts.values():
            if account.email.lower() == key:
                return account
        return None

    def list_by_roles(self, roles: list[str]) -> list[Account]:
        return [a for a in self._accounts.values() if a.role in roles]

    def save(self, account: Account) -> None:
        self._accounts[account.id] = account

    def _patch(self, account_id: UUID, **fields: object) -> Account | None:
        current = self._accounts.get(account_id)
        if current is None:
            return None
        updated = current.model_copy(update=fields)
        self._accounts[account_id] = updated
        return updated

    def update_avatar(self, account_id: UUID, avatar_url: str) -> Account | None:
        return self._patch(account_id, avatar_url=avatar_url)

    def update_presence(
        self, account_id: UUID, online: bool, last_active_at: datetime
    ) -> Account | None:
        return self._patch(account_id, is_online=online, last_active_at=last_active_at)

    def delete(self, account_id: UUID) -> None:
        self._accounts.pop(account_id, None)

    def clear(self) -> None:
        """Clear all accounts - useful for testing."""
        self._accounts.clear()


class InMemoryTransactionRepo:
    def __init__(self) -> None:
        self._transactions: dict[UUID, UpgradeTransaction] = {}

    def get_by_id(self, tx_id: UUID) -> UpgradeTransaction | None:
        return self._transactions.get(tx_id)

    def insert(self, tx: UpgradeTransaction) -> UpgradeTransaction:
        if tx.id in self._transactions:
            raise RecordStoreError(f"Transaction {tx.id} already exists")
        self._transactions[tx.id] = tx
        return tx

    def update(self, tx: UpgradeTransaction) -> UpgradeTransaction:
        if tx.id not in self._transactions:
            raise RecordStoreError(f"Transaction {tx.id} does not exist")
        self._transactions[tx.id] = tx
        return tx

    def list_by_account(self, account_id: UUID) -> list[UpgradeTransaction]:
        txs = [t for t in self._transactions.values() if t.account_id == account_id]
        return sorted(txs, key=lambda t: t.created_at, reverse=True)

    def list_by_status(self, statuses: list[str]) -> list[UpgradeTransaction]:
        txs = [t for t in self._transactions.values() if t.status in statuses]
        return sorted(txs, key=lambda t: t.created_at)

    def count(self) -> int:
        return len(self._transactions)


class InMemoryBroadcastRepo:
    def __init__(self) -> None:
        self._messages: list[BroadcastMessage] = []

    def insert(self, message: BroadcastMessage) -> BroadcastMessage:
        self._messages.append(message)
        return message

    def list_recent(self, limit: int) -> list[BroadcastMessage]:
        ordered = sorted(self._messages, key=lambda m: m.created_at, reverse=True)
        return ordered[:limit]
