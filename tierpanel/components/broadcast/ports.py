from tierpanel.ports.clock import ClockPort
from tierpanel.ports.repo import BroadcastRepoPort, RecordStoreError

__all__ = ["BroadcastRepoPort", "ClockPort", "RecordStoreError"]
