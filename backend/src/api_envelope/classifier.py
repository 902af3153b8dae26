"""Error classification.

``classify`` is the single place where a failure of any shape is turned into
an HTTP status, a user-safe message and a diagnostic payload. It is pure and
total: the same input always yields the same NormalizedError and nothing
passed to it makes it raise.

Dispatch order (first match wins):

1. Known-request data-layer fault, looked up in DATA_LAYER_CODES
2. Data-layer validation fault                      -> 400
3. Unknown data-layer request fault                 -> 500
4. Data-layer initialization/connection fault       -> 502
5. Any other exception, using its own status/message when it has them
6. Anything else that was raised or signalled       -> 500
"""

from dataclasses import dataclass
from http import HTTPStatus
from types import MappingProxyType
from typing import Any

from api_envelope.db.errors import DataLayerFamily
from api_envelope.faults import GenericFault, OpaqueValue, StructuredFault, capture, status_hint

ENGINE = "database"

FALLBACK_MESSAGE = "Something went wrong!"
GENERIC_MESSAGE = "An unexpected error occurred."


@dataclass(frozen=True)
class NormalizedError:
    status_code: HTTPStatus
    message: str
    detail: Any
    trace: str | None = None


# P1xxx: connectivity, P2xxx: constraint/query
DATA_LAYER_CODES: MappingProxyType[str, tuple[str, HTTPStatus]] = MappingProxyType(
    {
        "P1000": ("Authentication failed against the database server.", HTTPStatus.BAD_GATEWAY),
        "P1001": (
            "Cannot reach the database server. Please check connection.",
            HTTPStatus.BAD_GATEWAY,
        ),
        "P1002": ("The database operation timed out.", HTTPStatus.REQUEST_TIMEOUT),
        "P2000": ("Value too long for a database column.", HTTPStatus.BAD_REQUEST),
        "P2001": ("Record not found.", HTTPStatus.NOT_FOUND),
        "P2002": ("Duplicate key error — unique constraint failed.", HTTPStatus.CONFLICT),
        "P2003": ("Foreign key constraint failed.", HTTPStatus.BAD_REQUEST),
        "P2004": ("Database constraint failed.", HTTPStatus.BAD_REQUEST),
        "P2005": ("Invalid value stored in the database.", HTTPStatus.BAD_REQUEST),
        "P2006": ("Invalid value type provided for the field.", HTTPStatus.BAD_REQUEST),
        "P2007": ("Data validation error.", HTTPStatus.BAD_REQUEST),
        "P2008": ("Query parsing failed.", HTTPStatus.BAD_REQUEST),
        "P2009": ("Query validation failed.", HTTPStatus.BAD_REQUEST),
        "P2010": ("Raw query failed. Check your query syntax.", HTTPStatus.BAD_REQUEST),
        "P2011": ("Null constraint violation — missing required field.", HTTPStatus.BAD_REQUEST),
        "P2012": ("Missing required value for a field.", HTTPStatus.BAD_REQUEST),
        "P2013": ("Missing required argument for a field.", HTTPStatus.BAD_REQUEST),
        "P2014": ("Relation violation between records.", HTTPStatus.BAD_REQUEST),
        "P2015": ("Related record not found.", HTTPStatus.NOT_FOUND),
        "P2016": ("Query interpretation error.", HTTPStatus.BAD_REQUEST),
        "P2017": ("Record relation inconsistency.", HTTPStatus.BAD_REQUEST),
        "P2018": ("Required connected record not found.", HTTPStatus.NOT_FOUND),
        "P2019": ("Input error — invalid data.", HTTPStatus.BAD_REQUEST),
        "P2020": ("Value out of range for the column type.", HTTPStatus.BAD_REQUEST),
        "P2021": ("Table not found in the database.", HTTPStatus.NOT_FOUND),
        "P2022": ("Column not found in the database table.", HTTPStatus.NOT_FOUND),
        "P2023": (
            "Inconsistent column data — check your schema.",
            HTTPStatus.INTERNAL_SERVER_ERROR,
        ),
        "P2024": (
            "Transaction failed due to timeout or rollback.",
            HTTPStatus.INTERNAL_SERVER_ERROR,
        ),
        "P2025": ("Record to update/delete does not exist.", HTTPStatus.NOT_FOUND),
        "P2030": ("Database file not found (SQLite specific).", HTTPStatus.INTERNAL_SERVER_ERROR),
        "P2033": ("Number out of range for field type.", HTTPStatus.BAD_REQUEST),
    }
)


def _classify_structured(fault: StructuredFault) -> NormalizedError:
    match fault.family:
        case DataLayerFamily.KNOWN_REQUEST:
            unexpected = f"Unexpected {ENGINE} error (code: {fault.code})."
            message, status = DATA_LAYER_CODES.get(
                fault.code or "", (unexpected, HTTPStatus.INTERNAL_SERVER_ERROR)
            )
            detail = fault.meta if fault.meta is not None else fault.message
        case DataLayerFamily.VALIDATION:
            message, status = f"Validation error in {ENGINE} operation.", HTTPStatus.BAD_REQUEST
            detail = fault.message
        case DataLayerFamily.UNKNOWN_REQUEST:
            message = f"Unknown {ENGINE} request error occurred."
            status = HTTPStatus.INTERNAL_SERVER_ERROR
            detail = fault.message
        case DataLayerFamily.INITIALIZATION:
            message = f"Failed to initialize {ENGINE} client — check your DB connection."
            status = HTTPStatus.BAD_GATEWAY
            detail = fault.message
        case _:
            message = f"Unknown {ENGINE} request error occurred."
            status = HTTPStatus.INTERNAL_SERVER_ERROR
            detail = fault.message
    return NormalizedError(status_code=status, message=message, detail=detail, trace=fault.trace)


def _classify_generic(fault: GenericFault) -> NormalizedError:
    if fault.detail is not None:
        detail = fault.detail
    elif fault.trace is not None:
        detail = fault.trace
    else:
        detail = fault.raw
    message = fault.message if isinstance(fault.message, str) else None
    return NormalizedError(
        status_code=status_hint(fault.status) or HTTPStatus.INTERNAL_SERVER_ERROR,
        message=message or GENERIC_MESSAGE,
        detail=detail,
        trace=fault.trace,
    )


def classify(fault: object) -> NormalizedError:
    """Map any failure value onto a NormalizedError.

    Accepts a captured Fault or a raw value (which is captured first),
    so ``classify(42)`` and ``classify(exc)`` are both valid.
    """
    match capture(fault):
        case StructuredFault() as structured:
            return _classify_structured(structured)
        case GenericFault() as generic:
            return _classify_generic(generic)
        case OpaqueValue(raw=raw):
            return NormalizedError(
                status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
                message=FALLBACK_MESSAGE,
                detail=raw,
            )
