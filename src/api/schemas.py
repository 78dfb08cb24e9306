"""
Shared API schemas and the validation-error -> HTTP mapping.

Component services return `(entity, errors)`; routes call `raise_for_errors`
to turn a non-empty error list into:

- 404 when the first error is a `*_not_found` code
- 502 when the object store failed (`image_upload_failed`)
- 400 otherwise, with `detail={"errors": [...]}`
"""

from collections.abc import Sequence
from typing import Any, NoReturn, Protocol

from fastapi import HTTPException
from pydantic import BaseModel, ConfigDict

STORAGE_FAILURE_CODES = {"image_upload_failed"}


class ValidationErrorLike(Protocol):
    code: str
    message: str
    field: str | None


class ErrorItem(BaseModel):
    code: str
    message: str
    field: str | None = None


class SuccessResponse(BaseModel):
    success: bool = True


class CamelModel(BaseModel):
    """Request body that also accepts snake_case keys."""

    model_config = ConfigDict(populate_by_name=True)


def error_detail(errors: Sequence[ValidationErrorLike]) -> dict[str, Any]:
    return {
        "errors": [
            ErrorItem(code=e.code, message=e.message, field=e.field).model_dump() for e in errors
        ]
    }


def raise_for_errors(errors: Sequence[ValidationErrorLike]) -> None:
    """No-op for an empty list, otherwise raise the matching HTTPException."""
    if not errors:
        return
    _raise(errors)


def _raise(errors: Sequence[ValidationErrorLike]) -> NoReturn:
    first = errors[0].code
    if first.endswith("_not_found"):
        raise HTTPException(status_code=404, detail=error_detail(errors))
    if first in STORAGE_FAILURE_CODES:
        raise HTTPException(status_code=502, detail=error_detail(errors))
    raise HTTPException(status_code=400, detail=error_detail(errors))


def not_found(what: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"{what} not found")
