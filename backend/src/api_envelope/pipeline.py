"""Fault pipeline: the boundary between route handlers and the wire.

Every failure a handler produces reaches ``handle_fault`` exactly once and is
turned into the error envelope via capture -> classify -> emit. Requests that
match no route never get that far: the router's default endpoint answers them
with a fixed 404.
"""

from collections.abc import Awaitable, Callable
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import Receive, Scope, Send
from starlette.websockets import WebSocketClose

from api_envelope.classifier import NormalizedError, classify
from api_envelope.config import Settings
from api_envelope.db.errors import DataLayerError
from api_envelope.emitter import emit
from api_envelope.exceptions import DomainError, HandlerFailure
from api_envelope.faults import capture
from api_envelope.logging import get_logger
from api_envelope.middleware import REQUEST_ID_HEADER, current_request_id

logger = get_logger(__name__)

NOT_FOUND_MESSAGE = "API not found."

# Handled inside the app's exception middleware. Anything else is caught by
# FaultBoundaryMiddleware, which also answers via handle_fault.
EXPECTED_FAULTS: tuple[type[Exception], ...] = (
    HTTPException,
    RequestValidationError,
    DomainError,
    HandlerFailure,
    DataLayerError,
    SQLAlchemyError,
)


def _is_diagnostic(request: Request) -> bool:
    settings: Settings | None = getattr(request.app.state, "settings", None)
    return settings is not None and settings.is_diagnostic


def _respond(request: Request, normalized: NormalizedError) -> JSONResponse:
    response = emit(normalized, diagnostic=_is_diagnostic(request))
    request_id = current_request_id()
    if request_id is not None:
        response.headers[REQUEST_ID_HEADER] = request_id
    return response


def not_found_error(path: str) -> NormalizedError:
    return NormalizedError(
        status_code=HTTPStatus.NOT_FOUND,
        message=NOT_FOUND_MESSAGE,
        detail={"path": path, "message": "Your requested path is not found!"},
    )


async def handle_fault(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler shared by every fault type."""
    fault = capture(exc)
    normalized = classify(fault)

    log_fields = {
        "path": request.url.path,
        "method": request.method,
        "status_code": int(normalized.status_code),
        "fault": type(fault).__name__,
    }
    if normalized.status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error("request_fault", exc_info=exc, **log_fields)
    else:
        logger.warning("request_fault", error=normalized.message, **log_fields)

    return _respond(request, normalized)


class FaultBoundaryMiddleware(BaseHTTPMiddleware):
    """Answer unexpected exceptions inside the CORS and request-ID middleware.

    Must be the innermost user middleware so the envelope it returns still
    passes through the outer layers.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return await handle_fault(request, exc)


async def not_found(scope: Scope, receive: Receive, send: Send) -> None:
    """Router default endpoint for requests that match no route."""
    if scope["type"] == "websocket":
        await WebSocketClose()(scope, receive, send)
        return

    request = Request(scope, receive)
    logger.info("route_not_found", path=request.url.path, method=request.method)
    response = _respond(request, not_found_error(request.url.path))
    await response(scope, receive, send)


def register_fault_handlers(app: FastAPI) -> None:
    """Route every failure of ``app`` through the fault pipeline.

    Call before adding any other middleware: the boundary it installs has to
    sit inside them.
    """
    for exc_class in EXPECTED_FAULTS:
        app.add_exception_handler(exc_class, handle_fault)  # type: ignore[arg-type]
    app.add_middleware(FaultBoundaryMiddleware)
    # Last resort for failures raised by the outer middleware themselves.
    app.add_exception_handler(Exception, handle_fault)
    app.router.default = not_found
