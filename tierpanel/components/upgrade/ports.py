"""
Upgrade component ports.

External collaborators used by the workflow: record store for transactions,
object store for proofs, notification dispatcher and a clock.
"""

from tierpanel.ports.clock import ClockPort
from tierpanel.ports.notifier import DispatchResult, DispatchStatus, NotifierPort
from tierpanel.ports.objectstore import ObjectStoreError, ObjectStorePort
from tierpanel.ports.repo import RecordStoreError, TransactionRepoPort

__all__ = [
    "ClockPort",
    "DispatchResult",
    "DispatchStatus",
    "NotifierPort",
    "ObjectStoreError",
    "ObjectStorePort",
    "RecordStoreError",
    "TransactionRepoPort",
]
