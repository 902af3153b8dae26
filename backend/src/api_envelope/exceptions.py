"""Exceptions raised by route handlers.

Handlers raise these to signal business-rule violations. They carry a
``status_code`` hint that the fault pipeline uses when building the
error envelope: {"success": false, "message": "...", "error": ...}.
"""

from http import HTTPStatus
from typing import Any, NoReturn


class DomainError(Exception):
    """Base class for all domain exceptions."""

    status_code: int = HTTPStatus.BAD_REQUEST

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(DomainError):
    """Raised when a requested entity does not exist."""

    status_code = HTTPStatus.NOT_FOUND

    def __init__(self, entity: str, identifier: object) -> None:
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} with id {identifier} not found")


class ConflictError(DomainError):
    """Raised when an operation conflicts with existing state (e.g. duplicate)."""

    status_code = HTTPStatus.CONFLICT


class HandlerFailure(Exception):
    """Carries an arbitrary failure value out of a handler.

    Python can only raise exceptions, but a handler may want to fail with any
    value (a dict, a number, None). The pipeline unwraps ``value`` and
    classifies it as if the handler had thrown it directly.
    """

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(value)


def signal_failure(value: Any) -> NoReturn:
    """Fail the current request with ``value``."""
    if isinstance(value, BaseException):
        raise value
    raise HandlerFailure(value)
