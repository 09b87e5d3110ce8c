import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    """
    The one domain error. Carries the HTTP status plus a stable machine
    code; the handlers below turn it into the {ok:false, error:{...}} body.
    """

    def __init__(self, status: int, code: str, message: str, details=None):
        super().__init__(status_code=status, detail=message)
        self.status = status
        self.code = code
        self.message = message
        self.details = details

    def to_body(self) -> dict:
        error = {"code": self.code, "message": self.message}
        if self.details is not None:
            error["details"] = self.details
        return {"ok": False, "error": error}


def validation_error(message: str, details=None) -> ApiError:
    return ApiError(400, "VALIDATION_ERROR", message, details)


def as_api_error(exc: Exception) -> ApiError:
    if isinstance(exc, ApiError):
        return exc
    if isinstance(exc, StarletteHTTPException):
        # unmatched path and unmatched method both read as an unknown route
        if exc.status_code in (404, 405):
            return ApiError(404, "NOT_FOUND", "Route not found")
        return ApiError(exc.status_code, "HTTP_ERROR", str(exc.detail))
    return ApiError(500, "INTERNAL_ERROR", "Internal server error")


# -------------------------------
# Exception handlers
# -------------------------------

async def api_error_handler(request: Request, exc: Exception):
    error = as_api_error(exc)
    if error.status >= 500:
        logger.error(
            "API_ERROR code=%s message=%s details=%s path=%s",
            error.code, error.message, error.details, request.url.path,
        )
    return JSONResponse(status_code=error.status, content=error.to_body())


def unhandled_error_response(request: Request) -> JSONResponse:
    """Called from inside an `except` block; the traceback goes to the log, never the client."""
    logger.exception("UNHANDLED_ERROR path=%s", request.url.path)
    error = as_api_error(Exception())
    return JSONResponse(status_code=error.status, content=error.to_body())


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, api_error_handler)
