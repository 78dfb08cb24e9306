"""
Blacklist component - usernames refused for commissions.

Invariants:
- Usernames are unique case-insensitively
- Listing order is timestamp desc, id desc
"""

from ._impl import BlacklistService, validate_username
from .component import run_add, run_list, run_remove, run_update
from .models import (
    AddBlacklistInput,
    BlacklistOperationOutput,
    BlacklistPageOutput,
    BlacklistValidationError,
    ListBlacklistInput,
    RemoveBlacklistInput,
    UpdateBlacklistInput,
)
from .ports import BlacklistRepoPort

__all__ = [
    "run_list",
    "run_add",
    "run_update",
    "run_remove",
    "BlacklistService",
    "validate_username",
    "AddBlacklistInput",
    "BlacklistOperationOutput",
    "BlacklistPageOutput",
    "BlacklistValidationError",
    "ListBlacklistInput",
    "RemoveBlacklistInput",
    "UpdateBlacklistInput",
    "BlacklistRepoPort",
]
