"""Closed set of fault shapes seen by the classifier.

Whatever a handler raised is captured once, at the pipeline boundary, into
one of three variants. The classifier then matches on the variant instead
of inspecting arbitrary exception classes.
"""

import traceback
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from api_envelope.db.errors import (
    DataLayerError,
    DataLayerFamily,
    KnownRequestError,
    translate_db_error,
)
from api_envelope.exceptions import HandlerFailure


@dataclass(frozen=True)
class StructuredFault:
    """A fault raised by the persistence engine."""

    family: DataLayerFamily
    message: str
    code: str | None = None
    meta: Any = None
    trace: str | None = None


@dataclass(frozen=True)
class GenericFault:
    """Any other exception. Every field is best-effort."""

    message: str | None
    status: HTTPStatus | None = None
    trace: str | None = None
    raw: Any = None
    detail: Any = None


@dataclass(frozen=True)
class OpaqueValue:
    """A failure value that is not an exception at all."""

    raw: Any


Fault = StructuredFault | GenericFault | OpaqueValue


def _safe_str(value: object) -> str | None:
    # __str__ is user code and may itself raise
    try:
        return str(value)
    except Exception:
        return None


def _trace(error: BaseException) -> str | None:
    if error.__traceback__ is None:
        return None
    try:
        return "".join(traceback.format_exception(error))
    except Exception:
        return None


def status_hint(value: object) -> HTTPStatus | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    try:
        return HTTPStatus(value)
    except ValueError:
        return None


def _message_of(error: BaseException) -> str | None:
    message = getattr(error, "message", None)
    if isinstance(message, str):
        return message
    if isinstance(error, HTTPException):
        if isinstance(error.detail, str):
            return error.detail
        status = status_hint(error.status_code)
        return status.phrase if status is not None else None
    return _safe_str(error)


def _capture_data_layer(error: DataLayerError, trace: str | None) -> StructuredFault:
    if isinstance(error, KnownRequestError):
        return StructuredFault(
            family=error.family,
            message=error.message,
            code=error.code,
            meta=error.meta,
            trace=trace,
        )
    return StructuredFault(family=error.family, message=error.message, trace=trace)


def _capture_exception(error: BaseException) -> Fault:
    trace = _trace(error)

    if isinstance(error, DataLayerError):
        return _capture_data_layer(error, trace)
    if isinstance(error, SQLAlchemyError):
        return _capture_data_layer(translate_db_error(error), trace)

    if isinstance(error, RequestValidationError):
        return GenericFault(
            message="Request validation failed.",
            status=HTTPStatus.UNPROCESSABLE_ENTITY,
            trace=trace,
            raw=error,
            detail=jsonable_encoder(error.errors()),
        )

    detail = None
    if isinstance(error, HTTPException) and not isinstance(error.detail, str):
        detail = error.detail

    return GenericFault(
        message=_message_of(error),
        status=status_hint(getattr(error, "status_code", None)),
        trace=trace,
        raw=error,
        detail=detail,
    )


def capture(value: object) -> Fault:
    """Convert a raised or signalled value into a Fault. Never raises."""
    if isinstance(value, StructuredFault | GenericFault | OpaqueValue):
        return value
    if isinstance(value, HandlerFailure) and not isinstance(value.value, HandlerFailure):
        return capture(value.value)
    if isinstance(value, BaseException):
        try:
            return _capture_exception(value)
        except Exception:
            # A broken attribute or __str__ on the exception itself
            return GenericFault(message=None, trace=_trace(value), raw=value)
    return OpaqueValue(raw=value)
