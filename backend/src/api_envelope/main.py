from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api_envelope.config import Settings, settings
from api_envelope.db.session import shutdown
from api_envelope.logging import get_logger
from api_envelope.middleware import RequestIDMiddleware
from api_envelope.pipeline import register_fault_handlers
from api_envelope.routers.registry import MODULE_ROUTERS, ModuleRouter, build_api_router
from api_envelope.routers.root import router as root_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager: code before yield runs on startup, after yield on shutdown.

    Shutdown: close database connections gracefully.
    """
    logger.info("startup", environment=app.state.settings.environment)
    yield
    await shutdown()


def create_app(
    app_settings: Settings = settings,
    modules: Iterable[ModuleRouter] = MODULE_ROUTERS,
) -> FastAPI:
    """Build the application: middleware, fault pipeline and module routers."""
    app = FastAPI(lifespan=lifespan)
    app.state.settings = app_settings

    register_fault_handlers(app)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[app_settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(root_router)
    app.include_router(build_api_router(modules), prefix=app_settings.api_prefix)
    return app


app = create_app()
