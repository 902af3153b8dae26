"""Module router composition.

Each module contributes one APIRouter mounted at a fixed prefix. The table is
read once, when the application is built.
"""

from collections.abc import Iterable

from fastapi import APIRouter

from api_envelope.routers.health import router as health_router

ModuleRouter = tuple[str, APIRouter]

MODULE_ROUTERS: tuple[ModuleRouter, ...] = (("/health", health_router),)


def build_api_router(modules: Iterable[ModuleRouter] = MODULE_ROUTERS) -> APIRouter:
    """Mount every module router under its prefix on a fresh router."""
    router = APIRouter()
    for prefix, module_router in modules:
        router.include_router(module_router, prefix=prefix)
    return router
