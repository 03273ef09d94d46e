"""
Accounts component - user management under the delegation ceiling.
"""

from .component import (
    run_change_role,
    run_create_account,
    run_delete_account,
    run_list_manageable,
    run_touch_presence,
    run_update_avatar,
)
from .models import (
    AccountListOutput,
    AccountOutput,
    ChangeRoleInput,
    CreateAccountInput,
    DeleteAccountInput,
    ListAccountsInput,
    PresenceInput,
    UpdateAvatarInput,
)

__all__ = [
    # Entry points
    "run_list_manageable",
    "run_create_account",
    "run_delete_account",
    "run_change_role",
    "run_update_avatar",
    "run_touch_presence",
    # Input models
    "ListAccountsInput",
    "CreateAccountInput",
    "DeleteAccountInput",
    "ChangeRoleInput",
    "UpdateAvatarInput",
    "PresenceInput",
    # Output models
    "AccountOutput",
    "AccountListOutput",
]
