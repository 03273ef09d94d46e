import argparse
import logging
import sys
from pathlib import Path

from tierpanel.adapters.sqlite.repos import SQLiteAccountRepo, SQLiteTransactionRepo
from tierpanel.adapters.sqlite.schema import init_db
from tierpanel.api.deps import Settings
from tierpanel.domain.entities import Account
from tierpanel.domain.roles import ROLES
from tierpanel.rules.loader import load_rules

logger = logging.getLogger("cli")


def handle_init_db(settings: Settings, args: argparse.Namespace) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    init_db(settings.db_path)
    print(f"Database ready at {settings.db_path}")


def handle_add_account(settings: Settings, args: argparse.Namespace) -> None:
    repo = SQLiteAccountRepo(settings.db_path)
    account = Account(
        username=args.username,
        email=args.email,
        role=args.role,
        is_admin=args.admin,
    )
    repo.save(account)
    flag = " (admin)" if account.is_admin else ""
    print(f"Account {account.id} created: {account.username} [{account.role}]{flag}")


def handle_pending(settings: Settings, args: argparse.Namespace) -> None:
    rules = load_rules(settings.rules_path)
    repo = SQLiteTransactionRepo(settings.db_path)
    txs = repo.list_by_status(["pending_confirmation", "notified"])
    if not txs:
        print("No transactions awaiting approval.")
        return
    for tx in txs:
        print(
            f"{tx.id}  {tx.account_id}  {tx.package_type.upper():8} "
            f"{rules.pricing.currency} {tx.amount:>8}  {tx.payment_method:6} "
            f"{tx.status:21} {tx.proof_ref or '-'}"
        )


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO)

    parser = argparse.ArgumentParser(description="Tier Panel CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # init-db
    subparsers.add_parser("init-db", help="Create database tables")

    # add-account
    add_parser = subparsers.add_parser("add-account", help="Bootstrap an account")
    add_parser.add_argument("username")
    add_parser.add_argument("--email", default="")
    add_parser.add_argument("--role", choices=ROLES, default="member")
    add_parser.add_argument("--admin", action="store_true", help="Grant the admin override")

    # pending
    subparsers.add_parser("pending", help="List transactions awaiting approval")

    args = parser.parse_args(argv)
    settings = Settings()

    if args.command != "init-db" and not Path(settings.db_path).exists():
        logger.error("Database %s not found. Run 'init-db' first.", settings.db_path)
        sys.exit(1)

    if args.command == "init-db":
        handle_init_db(settings, args)
    elif args.command == "add-account":
        handle_add_account(settings, args)
    elif args.command == "pending":
        handle_pending(settings, args)


if __name__ == "__main__":
    main()
