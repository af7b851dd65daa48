from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from blogapi.exceptions import AppError
from blogapi.utils.logger import get_logger

logger = get_logger(__name__)


def error_response(status_code: int, detail: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "detail": detail}, headers=headers)


async def unexpected_error_response(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unhandled_exception",
        exc_info=exc,
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred")


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "request_failed",
            path=request.url.path,
            method=request.method,
            status_code=exc.status_code,
            error_type=type(exc).__name__,
        )
        return error_response(exc.status_code, exc.detail, headers=getattr(exc, "headers", None))

    # Errors raised inside the middleware stack itself; the request id middleware handles the rest
    app.add_exception_handler(Exception, unexpected_error_response)
