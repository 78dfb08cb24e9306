"""
Portfolio component - art and writing pieces.
"""

from ._impl import PortfolioService, normalize_tags, validate_piece_values
from .component import run_create_art, run_create_writing, run_update
from .models import (
    ArtOperationOutput,
    CreateArtInput,
    CreateWritingInput,
    PieceKind,
    PortfolioValidationError,
    UpdatePieceInput,
    WritingOperationOutput,
)
from .ports import ArtRepoPort, WritingRepoPort

__all__ = [
    "run_create_art",
    "run_create_writing",
    "run_update",
    "PortfolioService",
    "normalize_tags",
    "validate_piece_values",
    "ArtOperationOutput",
    "CreateArtInput",
    "CreateWritingInput",
    "PieceKind",
    "PortfolioValidationError",
    "UpdatePieceInput",
    "WritingOperationOutput",
    "ArtRepoPort",
    "WritingRepoPort",
]
