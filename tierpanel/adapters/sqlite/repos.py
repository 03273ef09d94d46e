import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any
from uuid import UUID

from tierpanel.domain.entities import Account, BroadcastMessage, UpgradeTransaction
from tierpanel.ports.repo import RecordStoreError


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class _SQLiteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise RecordStoreError(str(exc)) from exc
        finally:
            conn.close()


class SQLiteAccountRepo(_SQLiteRepo):
    def _to_account(self, row: dict[str, Any]) -> Account:
        return Account(
            id=UUID(row["id"]),
            username=row["username"],
            email=row["email"],
            role=row["role"],
            is_admin=bool(row["is_admin"]),
            avatar_url=row["avatar_url"],
            is_online=bool(row["is_online"]),
            last_active_at=_dt(row["last_active_at"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def get_by_id(self, account_id: UUID) -> Account | None:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT * FROM accounts WHERE id = ?", (str(account_id),)
            ).fetchone()
        return self._to_account(row) if row else None

    def get_by_email(self, email: str) -> Account | None:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT * FROM accounts WHERE lower(email) = lower(?) LIMIT 1",
                (email.strip(),),
            ).fetchone()
        return self._to_account(row) if row else None

    def list_by_roles(self, roles: list[str]) -> list[Account]:
        if not roles:
            return []
        placeholders = ", ".join("?" for _ in roles)
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM accounts WHERE role IN ({placeholders}) "
                "ORDER BY created_at DESC",
                tuple(roles),
            ).fetchall()
        return [self._to_account(r) for r in rows]

    def save(self, account: Account) -> None:
        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO accounts (
                    id, username, email, role, is_admin,
                    avatar_url, is_online, last_active_at, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    username=excluded.username,
                    email=excluded.email,
                    role=excluded.role,
                    is_admin=excluded.is_admin,
                    avatar_url=excluded.avatar_url,
                    is_online=excluded.is_online,
                    last_active_at=excluded.last_active_at
            """,
                (
                    str(account.id),
                    account.username,
                    account.email,
                    account.role,
                    int(account.is_admin),
                    account.avatar_url,
                    int(account.is_online),
                    account.last_active_at.isoformat() if account.last_active_at else None,
                    account.created_at.isoformat(),
                ),
            )

    def update_avatar(self, account_id: UUID, avatar_url: str) -> Account | None:
        with self._conn() as conn:
            conn.execute(
                "UPDATE accounts SET avatar_url = ? WHERE id = ?",
                (avatar_url, str(account_id)),
            )
        return self.get_by_id(account_id)

    def update_presence(
        self, account_id: UUID, online: bool, last_active_at: datetime
    ) -> Account | None:
        with self._conn() as conn:
            conn.execute(
                "UPDATE accounts SET is_online = ?, last_active_at = ? WHERE id = ?",
                (int(online), last_active_at.isoformat(), str(account_id)),
            )
        return self.get_by_id(account_id)

    def delete(self, account_id: UUID) -> None:
        with self._conn() as conn:
            conn.execute("DELETE FROM accounts WHERE id = ?", (str(account_id),))


class SQLiteTransactionRepo(_SQLiteRepo):
    def _to_tx(self, row: dict[str, Any]) -> UpgradeTransaction:
        return UpgradeTransaction(
            id=UUID(row["id"]),
            account_id=UUID(row["account_id"]),
            package_type=row["package_type"],
            amount=row["amount"],
            payment_method=row["payment_method"],
            proof_ref=row["proof_ref"],
            storage_key=row["storage_key"],
            status=row["status"],
            notified=bool(row["notified"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _params(self, tx: UpgradeTransaction) -> tuple[Any, ...]:
        return (
            str(tx.account_id),
            tx.package_type,
            tx.amount,
            tx.payment_method,
            tx.proof_ref,
            tx.storage_key,
            tx.status,
            int(tx.notified),
            tx.created_at.isoformat(),
            tx.updated_at.isoformat(),
            str(tx.id),
        )

    def get_by_id(self, tx_id: UUID) -> UpgradeTransaction | None:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT * FROM upgrade_transactions WHERE id = ?", (str(tx_id),)
            ).fetchone()
        return self._to_tx(row) if row else None

    def insert(self, tx: UpgradeTransaction) -> UpgradeTransaction:
        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO upgrade_transactions (
                    account_id, package_type, amount, payment_method, proof_ref,
                    storage_key, status, notified, created_at, updated_at, id
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
                self._params(tx),
            )
        return tx

    def update(self, tx: UpgradeTransaction) -> UpgradeTransaction:
        with self._conn() as conn:
            cursor = conn.execute(
                """
                UPDATE upgrade_transactions SET
                    account_id=?, package_type=?, amount=?, payment_method=?,
                    proof_ref=?, storage_key=?, status=?, notified=?,
                    created_at=?, updated_at=?
                WHERE id = ?
            """,
                self._params(tx),
            )
            if cursor.rowcount == 0:
                raise RecordStoreError(f"Transaction {tx.id} does not exist")
        return tx

    def list_by_account(self, account_id: UUID) -> list[UpgradeTransaction]:
        with self._conn() as conn:
            rows = conn.execute(
                "SELECT * FROM upgrade_transactions WHERE account_id = ? "
                "ORDER BY created_at DESC",
                (str(account_id),),
            ).fetchall()
        return [self._to_tx(r) for r in rows]

    def list_by_status(self, statuses: list[str]) -> list[UpgradeTransaction]:
        if not statuses:
            return []
        placeholders = ", ".join("?" for _ in statuses)
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM upgrade_transactions WHERE status IN ({placeholders}) "
                "ORDER BY created_at ASC",
                tuple(statuses),
            ).fetchall()
        return [self._to_tx(r) for r in rows]


class SQLiteBroadcastRepo(_SQLiteRepo):
    def insert(self, message: BroadcastMessage) -> BroadcastMessage:
        with self._conn() as conn:
            conn.execute(
                "INSERT INTO broadcast_messages (id, sender_id, message, created_at) "
                "VALUES (?, ?, ?, ?)",
                (
                    str(message.id),
                    str(message.sender_id),
                    message.message,
                    message.created_at.isoformat(),
                ),
            )
        return message

    def list_recent(self, limit: int) -> list[BroadcastMessage]:
        with self._conn() as conn:
            rows = conn.execute(
                "SELECT * FROM broadcast_messages ORDER BY created_at DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [
            BroadcastMessage(
                id=UUID(r["id"]),
                sender_id=UUID(r["sender_id"]),
                message=r["message"],
                created_at=datetime.fromisoformat(r["created_at"]),
            )
            for r in rows
        ]
