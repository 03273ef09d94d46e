import sqlite3

SCHEMA = """
CREATE TABLE IF NOT EXISTS accounts (
    id TEXT PRIMARY KEY,
    username TEXT NOT NULL,
    email TEXT NOT NULL,
    role TEXT NOT NULL CHECK (role IN ('member', 'premium', 'vip')),
    is_admin INTEGER NOT NULL DEFAULT 0,
    avatar_url TEXT,
    is_online INTEGER NOT NULL DEFAULT 0,
    last_active_at TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS upgrade_transactions (
    id TEXT PRIMARY KEY,
    account_id TEXT NOT NULL,
    package_type TEXT NOT NULL CHECK (package_type IN ('premium', 'vip')),
    amount INTEGER NOT NULL,
    payment_method TEXT NOT NULL,
    proof_ref TEXT,
    storage_key TEXT,
    status TEXT NOT NULL,
    notified INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_upgrade_transactions_account
    ON upgrade_transactions (account_id);

CREATE TABLE IF NOT EXISTS broadcast_messages (
    id TEXT PRIMARY KEY,
    sender_id TEXT NOT NULL,
    message TEXT NOT NULL,
    created_at TEXT NOT NULL
);
"""


def init_db(db_path: str) -> None:
    """Create tables if they do not exist yet."""
    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(SCHEMA)
        conn.commit()
    finally:
        conn.close()
