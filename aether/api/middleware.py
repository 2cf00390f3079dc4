"""
API middleware for Aether.

Provides:
- Rate limiting
- User context
- Request logging
- Error handling and domain exception mapping
"""

import time
from typing import Callable

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from aether.config import settings
from aether.core.llm_engine import LLMCallError, LLMErrorKind
from aether.services.history_store import HistoryStoreError
from aether.services.response_parser import MalformedInputError
from aether.utils.file_validators import FileValidationError
from aether.utils.logger import bind_request_context, get_logger

logger = get_logger("middleware")


# Rate limiter using client IP
limiter = Limiter(key_func=get_remote_address)

LLM_ERROR_STATUS = {
    LLMErrorKind.RATE_LIMITED: 429,
    LLMErrorKind.CONTENT_BLOCKED: 422,
    LLMErrorKind.EMPTY_CANDIDATE: 502,
    LLMErrorKind.TRANSPORT: 502,
}


def error_body(error: str, message: str, error_code: str) -> dict:
    """Standard error response body."""
    return {"error": error, "message": message, "error_code": error_code}


def get_user_id(request: Request) -> str:
    """User ID from request state, set by UserContextMiddleware."""
    return getattr(request.state, "user_id", settings.default_user_id)


class UserContextMiddleware(BaseHTTPMiddleware):
    """
    Attaches the calling user's ID to the request.

    Reads the X-User-ID header and falls back to the default user.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        user_id = request.headers.get("X-User-ID", "").strip()
        request.state.user_id = user_id or settings.default_user_id
        return await call_next(request)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request/response logging.

    Binds method, path and user to every event logged while the request
    is handled, then logs completion status and processing time.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        start_time = time.time()

        method = request.method
        path = request.url.path
        user_id = get_user_id(request)

        bind_request_context(method=method, path=path, user_id=user_id)
        logger.info("Request received", client_ip=get_remote_address(request))

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                error=str(e),
                process_time_ms=int((time.time() - start_time) * 1000)
            )
            raise

        process_time = time.time() - start_time
        logger.info(
            "Request completed",
            status_code=response.status_code,
            process_time_ms=int(process_time * 1000)
        )

        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Catches unhandled exceptions and returns safe error responses.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        try:
            return await call_next(request)

        except HTTPException:
            raise

        except ValueError as e:
            logger.warning("Validation error", error=str(e))
            return JSONResponse(
                status_code=400,
                content=error_body("Validation Error", str(e), "VALIDATION_ERROR")
            )

        except Exception as e:
            logger.error("Unhandled exception", error=str(e), exc_info=True)
            return JSONResponse(
                status_code=500,
                content=error_body(
                    "Internal Server Error",
                    "An unexpected error occurred. Please try again.",
                    "INTERNAL_ERROR"
                )
            )


async def llm_error_handler(request: Request, exc: LLMCallError) -> JSONResponse:
    status_code = LLM_ERROR_STATUS[exc.kind]
    logger.warning("Language model call failed", kind=exc.kind.value, status_code=status_code)
    return JSONResponse(
        status_code=status_code,
        content=error_body("Language Model Error", exc.message, exc.kind.value.upper())
    )


async def malformed_input_handler(request: Request, exc: MalformedInputError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=error_body("Malformed Input", str(exc), exc.error_code)
    )


async def file_validation_handler(request: Request, exc: FileValidationError) -> JSONResponse:
    logger.warning("File validation failed", error_code=exc.error_code, error=exc.message)
    return JSONResponse(
        status_code=400,
        content=error_body("Invalid File", exc.message, exc.error_code)
    )


async def history_error_handler(request: Request, exc: HistoryStoreError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=error_body("Invalid Request", str(exc), exc.error_code)
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content=error_body(
            "Rate Limit Exceeded",
            "Too many requests. Please wait before trying again.",
            "RATE_LIMIT_EXCEEDED"
        )
    )


def setup_rate_limiting(app: FastAPI) -> None:
    """Setup rate limiting on the application."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain exceptions to standard error responses."""
    app.add_exception_handler(LLMCallError, llm_error_handler)
    app.add_exception_handler(MalformedInputError, malformed_input_handler)
    app.add_exception_handler(FileValidationError, file_validation_handler)
    app.add_exception_handler(HistoryStoreError, history_error_handler)
