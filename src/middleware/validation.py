"""Request validation error handler.

Malformed request bodies are reported as 400 with a per-field list,
in place of FastAPI's default 422.
"""

from fastapi.exceptions import RequestValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse

from src.logging_config import get_logger

logger = get_logger(__name__)


def _field_name(loc: tuple) -> str:
    # Drop the "body"/"query" source prefix FastAPI adds
    if len(loc) > 1:
        loc = loc[1:]
    return ".".join(str(part) for part in loc)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return a 400 JSON response listing each invalid field."""
    errors = [
        {
            "field": _field_name(tuple(error.get("loc", ()))),
            "message": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    logger.info(
        "Request validation failed",
        path=request.url.path,
        fields=[error["field"] for error in errors],
    )
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request", "errors": errors},
    )
