"""
Broadcast component - announcements from VIP and admin accounts.
"""

from .component import MAX_MESSAGE_LENGTH, run_list_recent, run_send_broadcast
from .models import BroadcastListOutput, BroadcastOutput, SendBroadcastInput

__all__ = [
    "run_send_broadcast",
    "run_list_recent",
    "MAX_MESSAGE_LENGTH",
    "SendBroadcastInput",
    "BroadcastOutput",
    "BroadcastListOutput",
]
