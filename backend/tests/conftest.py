from collections.abc import AsyncIterator, Callable

import pytest
import pytest_asyncio
from fastapi import APIRouter, FastAPI, HTTPException, Query
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import IntegrityError, OperationalError

from api_envelope.config import Environment, Settings
from api_envelope.db.errors import InitializationError, KnownRequestError
from api_envelope.db.session import get_db
from api_envelope.exceptions import ConflictError, HandlerFailure, NotFoundError, signal_failure
from api_envelope.main import create_app
from api_envelope.routers.registry import MODULE_ROUTERS
from tests.fakes import FakeDriverError, FakeSession

# Routes that fail in every way a real module can, mounted like any other module.
faults_router = APIRouter()


@faults_router.get("/ok")
async def ok() -> dict[str, bool]:
    return {"ok": True}


@faults_router.get("/conflict")
async def conflict() -> None:
    raise ConflictError("Deal already booked")


@faults_router.get("/deals/{deal_id}")
async def missing_deal(deal_id: int) -> None:
    raise NotFoundError("Deal", deal_id)


@faults_router.get("/crash")
async def crash() -> None:
    raise RuntimeError("boom")


@faults_router.get("/opaque")
async def opaque() -> None:
    signal_failure(42)


@faults_router.get("/unauthorized")
async def unauthorized() -> None:
    raise HTTPException(status_code=401, detail="Not authenticated")


@faults_router.get("/unique")
async def unique() -> None:
    raise KnownRequestError("P2002", "Unique constraint failed", meta={"target": ["email"]})


@faults_router.get("/integrity")
async def integrity() -> None:
    raise IntegrityError(
        "INSERT INTO users (email) VALUES ($1)",
        {"email": "a@example.com"},
        FakeDriverError("duplicate key value violates unique constraint", sqlstate="23505"),
    )


@faults_router.get("/offline")
async def offline() -> None:
    raise InitializationError("connection refused")


@faults_router.get("/unreachable")
async def unreachable() -> None:
    raise OperationalError("SELECT 1", {}, FakeDriverError("could not connect to server"))


async def _load_profile(user_id: int) -> None:
    await _load_permissions(user_id)


async def _load_permissions(user_id: int) -> None:
    raise ConflictError(f"Permissions for {user_id} are locked")


@faults_router.get("/nested")
async def nested() -> None:
    await _load_profile(7)


@faults_router.get("/resignal")
async def resignal() -> None:
    try:
        signal_failure("first")
    except HandlerFailure:
        signal_failure({"reason": "second"})


@faults_router.get("/paged")
async def paged(limit: int = Query(20, ge=1, le=100)) -> dict[str, int]:
    return {"limit": limit}


@faults_router.post("/submit")
async def submit() -> dict[str, bool]:
    return {"ok": True}


FRONTEND_URL = "http://localhost:3000"


def build_app(environment: Environment) -> FastAPI:
    return create_app(
        Settings(environment=environment, frontend_url=FRONTEND_URL),
        modules=(*MODULE_ROUTERS, ("/faults", faults_router)),
    )


@pytest.fixture
def fake_db() -> FakeSession:
    return FakeSession()


@pytest_asyncio.fixture
async def make_client(
    fake_db: FakeSession,
) -> AsyncIterator[Callable[[Environment], AsyncClient]]:
    """Factory for HTTP clients bound to an app running in the given environment."""
    clients: list[AsyncClient] = []

    async def override_get_db() -> AsyncIterator[FakeSession]:
        yield fake_db

    def factory(environment: Environment) -> AsyncClient:
        app = build_app(environment)
        app.dependency_overrides[get_db] = override_get_db
        # Failures in the outer middleware are re-raised by the server after the 500
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        client = AsyncClient(transport=transport, base_url="http://test")
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.aclose()


@pytest_asyncio.fixture
async def client(make_client: Callable[[Environment], AsyncClient]) -> AsyncClient:
    """HTTP client for an app in production mode."""
    return make_client("production")


@pytest_asyncio.fixture
async def dev_client(make_client: Callable[[Environment], AsyncClient]) -> AsyncClient:
    """HTTP client for an app in development (diagnostic) mode."""
    return make_client("development")
