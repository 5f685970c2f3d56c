"""Main FastAPI application."""
import re
import time
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from registry.api import auth, usage
from registry.config import settings
from registry.constants import ErrorReason
from registry.services.container import Services, build_services
from registry.utils.exceptions import AppException, error_body
from registry.utils.logger import logger


class RequestLoggingMiddleware:
    """Logs method, path, status code and duration for every request.

    Raw ASGI so response bodies are not buffered. Never logs headers or
    bodies, which carry API keys and session tokens.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "?")
        path = scope.get("path", "?")
        start = time.monotonic()
        status_code = 0

        async def logging_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            await send(message)

        try:
            await self.app(scope, receive, logging_send)
        finally:
            duration_ms = (time.monotonic() - start) * 1000
            logger.info(f"{method} {path} {status_code} {duration_ms:.1f}ms")


# Exception handlers


async def _app_exception_response(request: Request, exc: AppException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.reason))


async def _validation_error_response(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are a plain 400. Field errors carry raw input, so they are not logged."""
    logger.debug(f"Rejected malformed request body on {request.url.path}")
    return JSONResponse(status_code=400, content=error_body(ErrorReason.BAD_REQUEST))


def _status_reason(status_code: int) -> str:
    """Snake-case reason for a bare HTTP error, e.g. 405 -> method_not_allowed."""
    try:
        phrase = HTTPStatus(status_code).phrase
    except ValueError:
        return ErrorReason.HTTP_ERROR
    return re.sub(r"[^a-z0-9]+", "_", phrase.lower()).strip("_")


async def _http_exception_response(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content=error_body(ErrorReason.NOT_FOUND, path=request.url.path),
        )
    return JSONResponse(status_code=exc.status_code, content=error_body(_status_reason(exc.status_code)))


async def _unhandled_exception_response(request: Request, exc: Exception) -> JSONResponse:
    """Generic 500. The traceback is logged, never returned."""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=error_body(ErrorReason.INTERNAL_ERROR))


def create_app(services: Optional[Services] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        services: Pre-built services (tests). When omitted, services are
            built from settings on startup and closed on shutdown.

    Returns:
        The application
    """

    @asynccontextmanager
    async def lifespan(application: FastAPI) -> AsyncIterator[None]:
        owned = services is None
        if owned:
            application.state.services = build_services(settings)
        logger.info(f"Registry started (environment: {settings.environment})")
        try:
            yield
        finally:
            if owned:
                await application.state.services.close()
            logger.info("Registry stopped")

    application = FastAPI(
        title="Warren Registry",
        description="Session issuance and license gating for game servers",
        version="0.1.0",
        lifespan=lifespan,
    )
    if services is not None:
        application.state.services = services

    application.add_middleware(RequestLoggingMiddleware)

    application.add_exception_handler(AppException, _app_exception_response)
    application.add_exception_handler(RequestValidationError, _validation_error_response)
    application.add_exception_handler(StarletteHTTPException, _http_exception_response)
    application.add_exception_handler(Exception, _unhandled_exception_response)

    application.include_router(auth.router)
    application.include_router(usage.router)

    @application.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    return application


app = create_app()
