"""Error response schema.

All error responses use the same envelope:
{"success": false, "message": "...", "error": <any>, "stack": "..."}.
``stack`` is only present in development mode.
"""

from typing import Any, Literal

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Top-level error envelope returned by all error responses."""

    success: Literal[False] = False
    message: str
    error: Any = None
    stack: str | None = None
