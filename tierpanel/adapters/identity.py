"""Identity provider adapters.

The real identity provider lives outside this package. `TrustedHeaderIdentity`
serves deployments behind a gateway that authenticates the caller and forwards
the account id; credentials are never seen here.
"""

import logging
from uuid import UUID, uuid4

from tierpanel.domain.entities import Account
from tierpanel.ports.identity import IdentityError
from tierpanel.ports.repo import AccountRepoPort

logger = logging.getLogger(__name__)


class TrustedHeaderIdentity:
    def __init__(self, accounts: AccountRepoPort) -> None:
        self.accounts = accounts

    def current_account(self, token: str | None) -> Account | None:
        if not token:
            return None
        try:
            account_id = UUID(token)
        except ValueError:
            return None
        return self.accounts.get_by_id(account_id)

    def register(self, email: str, password: str, username: str) -> UUID:
        # Uniqueness lives in the record store so it holds across requests
        if self.accounts.get_by_email(email) is not None:
            raise IdentityError("Email already registered")
        account_id = uuid4()
        logger.info("Registered identity %s for %s", account_id, username)
        return account_id
