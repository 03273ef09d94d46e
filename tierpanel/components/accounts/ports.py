from tierpanel.ports.clock import ClockPort
from tierpanel.ports.identity import IdentityError, IdentityProviderPort
from tierpanel.ports.objectstore import ObjectStoreError, ObjectStorePort
from tierpanel.ports.repo import AccountRepoPort, RecordStoreError

__all__ = [
    "AccountRepoPort",
    "ClockPort",
    "IdentityError",
    "IdentityProviderPort",
    "ObjectStoreError",
    "ObjectStorePort",
    "RecordStoreError",
]
