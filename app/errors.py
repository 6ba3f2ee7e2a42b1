import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ValidationFailed(HTTPException):
    """Field-level validation failure raised from the service layer."""

    def __init__(self, errors: dict[str, list[str]], message: str | None = None):
        self.errors = errors
        first = next(iter(errors.values()), [message or "Validation error"])
        super().__init__(
            status_code=422,
            detail={
                "code": "validation_error",
                "message": message or first[0],
                "details": errors,
            },
        )


def _error_payload(code: str, message: str, details, **extra):
    payload = {"code": code, "message": message, "details": details}
    payload.update(extra)
    return payload


def register_error_handlers(app) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        detail = exc.detail
        code = f"http_{exc.status_code}"
        message = "Request failed"
        details = None
        extra = {}
        if isinstance(detail, dict):
            code = detail.get("code", code)
            message = detail.get("message", message)
            details = detail.get("details")
            extra = {
                key: value
                for key, value in detail.items()
                if key not in {"code", "message", "details"}
            }
        elif isinstance(detail, str):
            message = detail
        else:
            details = detail
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_payload(code, message, details, **extra),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        # exc.errors() ctx may contain raw Exception objects (not JSON-serialisable).
        errors = [
            {k: str(v) if k == "ctx" else v for k, v in err.items()}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content=_error_payload("validation_error", "Validation error", errors),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=_error_payload("internal_error", "Internal server error", None),
        )
