"""Data-layer fault families.

Everything the persistence engine can raise is folded into four families:
known request errors (carrying a ``P1xxx``/``P2xxx`` code), validation
errors, unknown request errors and initialization/connection errors.
``translate_db_error`` maps SQLAlchemy exceptions onto them so handlers
never need to know about driver-specific exception classes.
"""

from enum import StrEnum
from typing import Any

from sqlalchemy import exc as sa_exc


class DataLayerFamily(StrEnum):
    KNOWN_REQUEST = "known_request"
    VALIDATION = "validation"
    UNKNOWN_REQUEST = "unknown_request"
    INITIALIZATION = "initialization"


class DataLayerError(Exception):
    """Base class for faults originating in the persistence engine."""

    family: DataLayerFamily

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class KnownRequestError(DataLayerError):
    """A request the engine rejected with a recognizable error code."""

    family = DataLayerFamily.KNOWN_REQUEST

    def __init__(self, code: str, message: str, meta: dict[str, Any] | None = None) -> None:
        self.code = code
        self.meta = meta
        super().__init__(message)


class DataValidationError(DataLayerError):
    """The query was rejected before reaching the database."""

    family = DataLayerFamily.VALIDATION


class UnknownRequestError(DataLayerError):
    """The database failed in a way no code describes."""

    family = DataLayerFamily.UNKNOWN_REQUEST


class InitializationError(DataLayerError):
    """The engine could not connect or authenticate."""

    family = DataLayerFamily.INITIALIZATION


# PostgreSQL SQLSTATE -> data-layer code
SQLSTATE_CODES: dict[str, str] = {
    "23505": "P2002",  # unique_violation
    "23503": "P2003",  # foreign_key_violation
    "23502": "P2011",  # not_null_violation
    "23514": "P2004",  # check_violation
    "22001": "P2000",  # string_data_right_truncation
    "22003": "P2020",  # numeric_value_out_of_range
    "22P02": "P2007",  # invalid_text_representation
    "42P01": "P2021",  # undefined_table
    "42703": "P2022",  # undefined_column
    "42601": "P2010",  # syntax_error
    "40001": "P2024",  # serialization_failure
    "40P01": "P2024",  # deadlock_detected
    "57014": "P1002",  # query_canceled (statement_timeout)
    "28000": "P1000",  # invalid_authorization_specification
    "28P01": "P1000",  # invalid_password
}

# Fallback code per DBAPI error class when the SQLSTATE is unknown
_CLASS_CODES: tuple[tuple[type[sa_exc.DBAPIError], str], ...] = (
    (sa_exc.IntegrityError, "P2004"),
    (sa_exc.DataError, "P2007"),
    (sa_exc.ProgrammingError, "P2010"),
)

_DIAGNOSTIC_FIELDS = (
    ("constraint", "constraint_name"),
    ("table", "table_name"),
    ("column", "column_name"),
)


def _sqlstate(error: sa_exc.DBAPIError) -> str | None:
    # asyncpg/psycopg expose "sqlstate", psycopg2 "pgcode"
    for attr in ("sqlstate", "pgcode"):
        value = getattr(error.orig, attr, None)
        if isinstance(value, str) and value:
            return value
    return None


def _meta(error: sa_exc.DBAPIError, sqlstate: str | None) -> dict[str, Any]:
    meta: dict[str, Any] = {"sqlstate": sqlstate}
    # asyncpg chains the driver exception as __cause__, psycopg has .diag
    sources = (getattr(error.orig, "__cause__", None), getattr(error.orig, "diag", None))
    for key, attr in _DIAGNOSTIC_FIELDS:
        for source in sources:
            value = getattr(source, attr, None)
            if isinstance(value, str) and value:
                meta[key] = value
                break
    return meta


def _driver_message(error: sa_exc.DBAPIError) -> str:
    # str(error) includes the SQL statement and its parameters; the driver message does not
    return str(error.orig) if error.orig is not None else str(error)


def _translate_dbapi(error: sa_exc.DBAPIError) -> DataLayerError:
    sqlstate = _sqlstate(error)
    message = _driver_message(error)

    code = SQLSTATE_CODES.get(sqlstate) if sqlstate else None
    if code is None:
        code = next((c for cls, c in _CLASS_CODES if isinstance(error, cls)), None)
    if code is not None:
        return KnownRequestError(code, message, meta=_meta(error, sqlstate))

    if isinstance(error, sa_exc.OperationalError | sa_exc.InterfaceError):
        return InitializationError(message)
    return UnknownRequestError(message)


def translate_db_error(error: sa_exc.SQLAlchemyError) -> DataLayerError:
    """Fold a SQLAlchemy exception into one of the four data-layer families."""
    match error:
        case sa_exc.NoResultFound():
            return KnownRequestError("P2025", str(error))
        case sa_exc.MultipleResultsFound():
            return KnownRequestError("P2014", str(error))
        case sa_exc.TimeoutError():
            return KnownRequestError("P1002", str(error))
        case sa_exc.DisconnectionError():
            return InitializationError(str(error))
        case sa_exc.DBAPIError():
            return _translate_dbapi(error)
        case sa_exc.StatementError() | sa_exc.ArgumentError() | sa_exc.CompileError():
            return DataValidationError(str(error))
        case _:
            return UnknownRequestError(str(error))
