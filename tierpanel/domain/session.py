"""
Explicit account session.

Handlers receive the session instead of reading a global current account.
The snapshot is read once per decision; a role change made concurrently by
an administrator is picked up on the next `refresh()`.
"""

from __future__ import annotations

import logging

from tierpanel.domain.entities import Account
from tierpanel.domain.errors import AuthorizationError
from tierpanel.ports.identity import IdentityProviderPort

logger = logging.getLogger(__name__)


class AccountSession:
    def __init__(self, identity: IdentityProviderPort, token: str | None = None) -> None:
        self.identity = identity
        self.token = token
        self._account: Account | None = None

    @property
    def is_signed_in(self) -> bool:
        return self._account is not None

    @property
    def account(self) -> Account:
        if self._account is None:
            raise AuthorizationError("Not signed in")
        return self._account

    def sign_in(self, token: str) -> Account:
        account = self.identity.current_account(token)
        if account is None:
            raise AuthorizationError("Invalid session")
        self.token = token
        self._account = account
        logger.info("Session started for account %s", account.id)
        return account

    def refresh(self) -> Account:
        """Re-read the account snapshot from the identity provider."""
        if self.token is None:
            raise AuthorizationError("Not signed in")
        account = self.identity.current_account(self.token)
        if account is None:
            self.sign_out()
            raise AuthorizationError("Session expired")
        self._account = account
        return account

    def sign_out(self) -> None:
        if self._account is not None:
            logger.info("Session ended for account %s", self._account.id)
        self._account = None
        self.token = None
