from typing import Protocol
from uuid import UUID

from tierpanel.domain.entities import Account


class IdentityError(Exception):
    """Raised by identity providers when registration fails."""


class IdentityProviderPort(Protocol):
    """
    External identity/session provider.

    Owns credentials and session lifecycle; this package only reads the
    resolved account and asks it to register new identities.
    """

    def current_account(self, token: str | None) -> Account | None:
        ...

    def register(self, email: str, password: str, username: str) -> UUID:
        ...
