import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from services.exceptions import InvalidInput, RecordNotFound, RenderingFailure

logger = logging.getLogger(__name__)


def _now_iso():
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"code": status_code, "message": message}},
    )


def add_error_handlers(app: FastAPI):
    @app.exception_handler(RecordNotFound)
    async def not_found_handler(request: Request, exc: RecordNotFound):
        return _error(404, str(exc))

    @app.exception_handler(InvalidInput)
    async def invalid_input_handler(request: Request, exc: InvalidInput):
        logger.warning("Invalid grading input on %s: %s", request.url.path, exc)
        return _error(400, str(exc))

    # ✅ export / report failures go back as plain text
    @app.exception_handler(RenderingFailure)
    async def rendering_failure_handler(request: Request, exc: RenderingFailure):
        logger.error("Rendering failed on %s: %s", request.url.path, exc)
        return PlainTextResponse(str(exc), status_code=500)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": {"code": "INTERNAL_ERROR", "message": str(exc)},
                "generated_at": _now_iso(),
                "latency_ms": 0,
            },
        )
