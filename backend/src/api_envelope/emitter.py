"""Serialize a NormalizedError into the wire envelope."""

import json
from typing import Any

from fastapi.responses import JSONResponse
from pydantic_core import to_jsonable_python

from api_envelope.classifier import NormalizedError
from api_envelope.schemas.error import ErrorResponse


def _text(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return object.__repr__(value)


def _jsonable(detail: Any) -> Any:
    """Return ``detail`` in JSON-ready form, or its string form if it has none."""
    try:
        value = to_jsonable_python(detail)
        # JSONResponse renders with allow_nan=False; NaN/Infinity must not reach it
        json.dumps(value, allow_nan=False)
    except (ValueError, TypeError, RecursionError):
        return _text(detail)
    return value


def build_envelope(normalized: NormalizedError, *, diagnostic: bool) -> dict[str, Any]:
    """Build the error body. ``stack`` is only included when ``diagnostic`` is set."""
    envelope = ErrorResponse(
        message=normalized.message,
        error=_jsonable(normalized.detail),
        stack=normalized.trace if diagnostic else None,
    )
    return envelope.model_dump(exclude=None if diagnostic else {"stack"})


def emit(normalized: NormalizedError, *, diagnostic: bool) -> JSONResponse:
    """Render the envelope with the normalized status code."""
    return JSONResponse(
        status_code=int(normalized.status_code),
        content=build_envelope(normalized, diagnostic=diagnostic),
    )
