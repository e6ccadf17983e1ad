"""
REST API layer for SupportDesk.

Provides:
- FastAPI application with CORS and security-header middleware
- Chat routes under /api/chat
- Exception handlers mapping the error taxonomy onto the response envelope
- Root-level health check
- Background sweep of the in-memory rate limiter
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from supportdesk.api.routes import router
from supportdesk.api.schemas import error_response
from supportdesk.api.security import add_security_headers
from supportdesk.config import Settings, get_settings, validate_settings
from supportdesk.lib import errors
from supportdesk.lib.exceptions import (
    GuardrailViolation,
    PersistenceError,
    RateLimitExceeded,
    ValidationError,
)
from supportdesk.lib.guardrails import GuardrailStage
from supportdesk.lib.logging import hash_id
from supportdesk.models.database import create_session_factory
from supportdesk.services.chat_model import build_chat_model_client
from supportdesk.services.chat_repository import ChatRepository
from supportdesk.services.chat_service import ChatService

logger = structlog.get_logger(__name__)

_ALLOWED_HEADERS: list[str] = [
    "Content-Type",
    "Accept",
    "X-Request-ID",
]


def build_chat_service(settings: Settings) -> ChatService:
    """Wire the production ChatService from settings."""
    repository = ChatRepository(create_session_factory(settings.database_url))
    model_client = build_chat_model_client(settings.google_api_key, settings.gemini_model)
    return ChatService(repository, model_client)


def _validation_message(exc: RequestValidationError) -> str:
    for error in exc.errors():
        msg = str(error.get("msg", ""))
        if msg:
            return msg.removeprefix("Value error, ")
    return errors.get_error_message(errors.VALIDATION_ERROR)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError,
    ) -> JSONResponse:
        message = _validation_message(exc)
        logger.info(
            "request_rejected",
            path=request.url.path,
            **errors.build_error_response(errors.VALIDATION_ERROR, message),
        )
        return error_response(400, message)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        logger.info(
            "request_rejected",
            path=request.url.path,
            **errors.build_error_response(errors.VALIDATION_ERROR, str(exc)),
        )
        return error_response(400, str(exc))

    @app.exception_handler(GuardrailViolation)
    async def guardrail_violation_handler(
        request: Request, exc: GuardrailViolation,
    ) -> JSONResponse:
        code = (
            errors.PROMPT_INJECTION_DETECTED
            if exc.stage == GuardrailStage.INJECTION_DETECTION
            else errors.CONTENT_POLICY_VIOLATION
        )
        message = exc.result.reason or errors.get_error_message(code)
        logger.warning(
            "request_rejected",
            path=request.url.path,
            stage=exc.stage,
            **errors.build_error_response(code, message),
        )
        return error_response(400, message)

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        logger.warning(
            "request_rejected",
            path=request.url.path,
            **errors.build_error_response(
                errors.RATE_LIMIT_EXCEEDED,
                str(exc),
                {"window": exc.window, "retry_after": exc.retry_after},
            ),
        )
        return error_response(429, str(exc), headers={"Retry-After": str(exc.retry_after)})

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
        logger.error(
            "request_failed",
            path=request.url.path,
            conversation_hash=hash_id(request.query_params.get("conversationId")),
            **errors.build_error_response(errors.DATABASE_ERROR, str(exc)),
        )
        return error_response(500, errors.get_error_message(errors.DATABASE_ERROR))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unhandled_exception",
            method=request.method,
            path=request.url.path,
        )
        return error_response(500, errors.get_error_message(errors.INTERNAL_ERROR))


def create_app(
    settings: Settings | None = None,
    chat_service: ChatService | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use (default: read from the environment)
        chat_service: Pre-built ChatService (tests inject one backed by an
            in-memory database and a fake model client)

    Raises:
        ConfigurationError: If settings fail validation
    """
    settings = settings or get_settings()
    validate_settings(settings)

    service = chat_service or build_chat_service(settings)

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweep = asyncio.create_task(
            service.rate_limiter.run_cleanup_loop(settings.rate_limit_sweep_seconds)
        )
        logger.info("rate_limit_sweep_started", interval=settings.rate_limit_sweep_seconds)
        try:
            yield
        finally:
            sweep.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweep

    app = FastAPI(
        title="SupportDesk",
        description="Customer-support chat backend with input/output guardrails",
        version="0.1.0",
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.chat_service = service

    _register_exception_handlers(app)

    cors_origins = list(settings.cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=_ALLOWED_HEADERS,
    )
    if cors_origins:
        logger.info("cors_enabled", origins=cors_origins)
    else:
        logger.info("cors_disabled", note="no origins configured (restrictive default)")

    add_security_headers(app, hsts=settings.is_production)

    app.include_router(router)

    @app.get("/health")
    async def root_health_check() -> dict[str, str]:
        """Root health check for infrastructure probes."""
        return {"status": "ok"}

    return app


__all__ = ["create_app", "build_chat_service", "router"]
