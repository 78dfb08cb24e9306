"""
Blacklist component - entry points.

Shell Layer - runs the service and wraps results in outputs.
"""

from __future__ import annotations

from ._impl import BlacklistService
from .models import (
    AddBlacklistInput,
    BlacklistOperationOutput,
    BlacklistPageOutput,
    ListBlacklistInput,
    RemoveBlacklistInput,
    UpdateBlacklistInput,
)


def run_list(inp: ListBlacklistInput, service: BlacklistService) -> BlacklistPageOutput:
    """One page of entries, newest first; bad page values are clamped."""
    return BlacklistPageOutput(page=service.list_page(inp.page, inp.page_size))


def run_add(inp: AddBlacklistInput, service: BlacklistService) -> BlacklistOperationOutput:
    entry, errors = service.add(inp.username, inp.reasoning)
    return BlacklistOperationOutput(entry=entry, errors=errors, success=not errors)


def run_update(inp: UpdateBlacklistInput, service: BlacklistService) -> BlacklistOperationOutput:
    entry, errors = service.update(inp.entry_id, inp.username, inp.reasoning)
    return BlacklistOperationOutput(entry=entry, errors=errors, success=not errors)


def run_remove(inp: RemoveBlacklistInput, service: BlacklistService) -> BlacklistOperationOutput:
    errors = service.remove(inp.entry_id)
    return BlacklistOperationOutput(entry=None, errors=errors, success=not errors)
