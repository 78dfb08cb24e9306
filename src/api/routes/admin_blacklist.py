"""Admin routes for the commission blacklist."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from src.api.deps import get_blacklist_service, get_current_admin
from src.api.schemas import not_found, raise_for_errors
from src.components.blacklist import (
    AddBlacklistInput,
    BlacklistService,
    ListBlacklistInput,
    RemoveBlacklistInput,
    UpdateBlacklistInput,
    run_add,
    run_list,
    run_remove,
    run_update,
)
from src.domain.entities import AdminUser, BlacklistedUser

router = APIRouter()


class BlacklistCreateRequest(BaseModel):
    username: str
    reasoning: str | None = None


class BlacklistUpdateRequest(BaseModel):
    username: str | None = None
    reasoning: str | None = None


@router.get("")
def list_blacklist(
    page: str | None = Query(None),
    page_size: str | None = Query(None, alias="pageSize"),
    current_admin: AdminUser = Depends(get_current_admin),
    service: BlacklistService = Depends(get_blacklist_service),
) -> dict[str, Any]:
    """Paginated, newest first. Page values are clamped, never rejected."""
    result = run_list(ListBlacklistInput(page=page, page_size=page_size), service)
    return result.page.model_dump(mode="json", by_alias=True)


@router.post("", response_model=BlacklistedUser, status_code=201)
def add_to_blacklist(
    data: BlacklistCreateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: BlacklistService = Depends(get_blacklist_service),
) -> BlacklistedUser:
    result = run_add(AddBlacklistInput(username=data.username, reasoning=data.reasoning), service)
    raise_for_errors(result.errors)
    assert result.entry is not None
    return result.entry


@router.get("/{entry_id}", response_model=BlacklistedUser)
def get_blacklist_entry(
    entry_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: BlacklistService = Depends(get_blacklist_service),
) -> BlacklistedUser:
    entry = service.get(entry_id)
    if entry is None:
        raise not_found("Blacklist entry")
    return entry


@router.patch("/{entry_id}", response_model=BlacklistedUser)
def update_blacklist_entry(
    entry_id: UUID,
    data: BlacklistUpdateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: BlacklistService = Depends(get_blacklist_service),
) -> BlacklistedUser:
    result = run_update(
        UpdateBlacklistInput(entry_id=entry_id, username=data.username, reasoning=data.reasoning),
        service,
    )
    raise_for_errors(result.errors)
    assert result.entry is not None
    return result.entry


@router.delete("/{entry_id}", status_code=204)
def remove_from_blacklist(
    entry_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: BlacklistService = Depends(get_blacklist_service),
) -> None:
    result = run_remove(RemoveBlacklistInput(entry_id=entry_id), service)
    raise_for_errors(result.errors)
