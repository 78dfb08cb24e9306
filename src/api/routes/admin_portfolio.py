"""Admin routes for the art and writing portfolio."""

from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.api.deps import get_current_admin, get_portfolio_service
from src.api.schemas import not_found, raise_for_errors
from src.components.portfolio import (
    CreateArtInput,
    CreateWritingInput,
    PortfolioService,
    UpdatePieceInput,
    run_create_art,
    run_create_writing,
    run_update,
)
from src.domain.entities import AdminUser, ArtPiece, WritingPiece

router = APIRouter()


# --- Request Models ---


class ArtCreateRequest(BaseModel):
    title: str
    image_url: str
    slug: str | None = None
    description: str | None = None
    thumbnail_url: str | None = None
    year: int | None = None
    tags: list[str] = []
    is_featured: bool = False
    display_order: int = 0
    artist_name: str | None = None
    artist_url: str | None = None


class ArtUpdateRequest(BaseModel):
    title: str | None = None
    image_url: str | None = None
    description: str | None = None
    thumbnail_url: str | None = None
    year: int | None = None
    tags: list[str] | None = None
    is_featured: bool | None = None
    display_order: int | None = None
    artist_name: str | None = None
    artist_url: str | None = None


class WritingCreateRequest(BaseModel):
    title: str
    content: str
    slug: str | None = None
    excerpt: str | None = None
    cover_image: str | None = None
    year: int | None = None
    tags: list[str] = []
    is_featured: bool = False
    display_order: int = 0
    word_count: int | None = None


class WritingUpdateRequest(BaseModel):
    title: str | None = None
    content: str | None = None
    excerpt: str | None = None
    cover_image: str | None = None
    year: int | None = None
    tags: list[str] | None = None
    is_featured: bool | None = None
    display_order: int | None = None
    word_count: int | None = None


# --- Art ---


@router.get("/art", response_model=list[ArtPiece])
def list_art(
    current_admin: AdminUser = Depends(get_current_admin),
    service: PortfolioService = Depends(get_portfolio_service),
) -> list[ArtPiece]:
    return service.list_art()


@router.post("/art", response_model=ArtPiece, status_code=201)
def create_art(
    data: ArtCreateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: PortfolioService = Depends(get_portfolio_service),
) -> ArtPiece:
    values = data.model_dump()
    values["tags"] = tuple(values["tags"])
    result = run_create_art(CreateArtInput(**values), service)
    raise_for_errors(result.errors)
    assert result.piece is not None
    return result.piece


@router.get("/art/{piece_id}", response_model=ArtPiece)
def get_art(
    piece_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: PortfolioService = Depends(get_portfolio_service),
) -> ArtPiece:
    piece = service.get_art(piece_id)
    if piece is None:
        raise not_found("Art piece")
    return piece


@router.patch("/art/{piece_id}", response_model=ArtPiece)
def update_art(
    piece_id: UUID,
    data: ArtUpdateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: PortfolioService = Depends(get_portfolio_service),
) -> ArtPiece:
    """Replacing the image removes the old stored file."""
    result = run_update(
        UpdatePieceInput(kind="art", piece_id=piece_id, updates=data.model_dump(exclude_unset=True)),
        service,
    )
    raise_for_errors(result.errors)
    assert isinstance(result.piece, ArtPiece)
    return result.piece


@router.delete("/art/{piece_id}", status_code=204)
def delete_art(
    piece_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: PortfolioService = Depends(get_portfolio_service),
) -> None:
    raise_for_errors(service.delete_art(piece_id))


# --- Writing ---


@router.get("/writing", response_model=list[WritingPiece])
def list_writing(
    current_admin: AdminUser = Depends(get_current_admin),
    service: PortfolioService = Depends(get_portfolio_service),
) -> list[WritingPiece]:
    return service.list_writing()


@router.post("/writing", response_model=WritingPiece, status_code=201)
def create_writing(
    data: WritingCreateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: PortfolioService = Depends(get_portfolio_service),
) -> WritingPiece:
    values = data.model_dump()
    values["tags"] = tuple(values["tags"])
    result = run_create_writing(CreateWritingInput(**values), service)
    raise_for_errors(result.errors)
    assert result.piece is not None
    return result.piece


@router.get("/writing/{piece_id}", response_model=WritingPiece)
def get_writing(
    piece_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: PortfolioService = Depends(get_portfolio_service),
) -> WritingPiece:
    piece = service.get_writing(piece_id)
    if piece is None:
        raise not_found("Writing piece")
    return piece


@router.patch("/writing/{piece_id}", response_model=WritingPiece)
def update_writing(
    piece_id: UUID,
    data: WritingUpdateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: PortfolioService = Depends(get_portfolio_service),
) -> WritingPiece:
    result = run_update(
        UpdatePieceInput(
            kind="writing", piece_id=piece_id, updates=data.model_dump(exclude_unset=True)
        ),
        service,
    )
    raise_for_errors(result.errors)
    assert isinstance(result.piece, WritingPiece)
    return result.piece


@router.delete("/writing/{piece_id}", status_code=204)
def delete_writing(
    piece_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: PortfolioService = Depends(get_portfolio_service),
) -> None:
    raise_for_errors(service.delete_writing(piece_id))
