"""Exception handlers that render every failure as ``{success: false, error}``."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..errors import ChatformsError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def install_error_handlers(app: FastAPI) -> None:
    """Map the error taxonomy and request validation failures to HTTP."""

    @app.exception_handler(ChatformsError)
    async def handle_chatforms_error(request: Request, exc: ChatformsError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc
            )
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return error_response(exc.status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        logger.info("%s %s invalid request: %s", request.method, request.url.path, details)
        return error_response(400, f"Invalid request: {details}")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error in %s %s", request.method, request.url.path)
        return error_response(500, "Internal server error")
