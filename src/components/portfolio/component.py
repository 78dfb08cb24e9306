"""
Portfolio component - entry points.

Shell Layer - runs the service and wraps results in outputs.
"""

from __future__ import annotations

from ._impl import PortfolioService
from .models import (
    ArtOperationOutput,
    CreateArtInput,
    CreateWritingInput,
    UpdatePieceInput,
    WritingOperationOutput,
)


def run_create_art(inp: CreateArtInput, service: PortfolioService) -> ArtOperationOutput:
    piece, errors = service.create_art(
        title=inp.title,
        image_url=inp.image_url,
        slug=inp.slug,
        description=inp.description,
        thumbnail_url=inp.thumbnail_url,
        year=inp.year,
        tags=inp.tags,
        is_featured=inp.is_featured,
        display_order=inp.display_order,
        artist_name=inp.artist_name,
        artist_url=inp.artist_url,
    )
    return ArtOperationOutput(piece=piece, errors=errors, success=not errors)


def run_create_writing(
    inp: CreateWritingInput, service: PortfolioService
) -> WritingOperationOutput:
    piece, errors = service.create_writing(
        title=inp.title,
        content=inp.content,
        slug=inp.slug,
        excerpt=inp.excerpt,
        cover_image=inp.cover_image,
        year=inp.year,
        tags=inp.tags,
        is_featured=inp.is_featured,
        display_order=inp.display_order,
        word_count=inp.word_count,
    )
    return WritingOperationOutput(piece=piece, errors=errors, success=not errors)


def run_update(
    inp: UpdatePieceInput, service: PortfolioService
) -> ArtOperationOutput | WritingOperationOutput:
    if inp.kind == "art":
        art, errors = service.update_art(inp.piece_id, inp.updates)
        return ArtOperationOutput(piece=art, errors=errors, success=not errors)
    writing, errors = service.update_writing(inp.piece_id, inp.updates)
    return WritingOperationOutput(piece=writing, errors=errors, success=not errors)
