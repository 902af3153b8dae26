"""Health endpoints."""

from fastapi import APIRouter
from sqlalchemy import text

from api_envelope.dependencies import DB

router = APIRouter()


@router.get("", status_code=200)
async def health(db: DB) -> dict[str, str]:
    """Health check endpoint: verifies database connectivity.

    Returns 200 OK only if the database responds to a ping query. A database
    that cannot be reached surfaces as a data-layer fault (502).
    """
    await db.execute(text("SELECT 1"))
    return {"status": "ok"}
