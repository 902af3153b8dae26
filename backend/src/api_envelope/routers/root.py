"""Server status endpoint served outside the API prefix."""

import time
from datetime import UTC, datetime

from fastapi import APIRouter, Request

router = APIRouter()

_STARTED_AT = time.monotonic()


@router.get("/")
async def server_status(request: Request) -> dict[str, str]:
    settings = request.app.state.settings
    return {
        "message": "Server Is Running..",
        "environment": settings.environment,
        "uptime": f"{time.monotonic() - _STARTED_AT:.2f} second",
        "timeStamp": datetime.now(UTC).isoformat(),
    }
