"""Main FastAPI application."""

import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from domain.exceptions import DomainError
from domain.value_objects.caller_identity import CallerIdentity
from infrastructure.config import settings
from infrastructure.logging import bind_request_context, setup_logging
from interfaces.api.middleware import domain_error_handler
from interfaces.api.routes.auth_routes import router as auth_router
from interfaces.api.routes.feed_routes import router as feed_router
from interfaces.api.routes.post_routes import router as post_router

# Configure structured logging
setup_logging()

logger = structlog.get_logger()


def _log_identity_change(identity: CallerIdentity | None) -> None:
    if identity is None:
        logger.info("identity_changed", signed_in=False)
    else:
        logger.info("identity_changed", signed_in=True, user_id=identity.user_id)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:  # noqa: ARG001
    """Handle application startup and shutdown."""
    logger.info("app_starting", env=settings.app_env, storage_backend=settings.storage_backend)

    unsubscribe = None
    try:
        from application.ports.repositories.post_repository import PostRepository  # noqa: PLC0415
        from application.ports.session_gate import SessionGate  # noqa: PLC0415
        from interfaces.dependencies import get_container  # noqa: PLC0415

        container = get_container()
        session_gate = container[SessionGate]
        unsubscribe = session_gate.on_identity_change(_log_identity_change)

        await container[PostRepository].ensure_indexes()
        await session_gate.ensure_indexes()
        logger.info("indexes_initialized")
    except Exception as e:  # noqa: BLE001
        logger.warning("index_initialization_failed", error=str(e))
        # Don't fail startup - queries still work, only slower

    logger.info("app_ready")

    yield

    if unsubscribe is not None:
        unsubscribe()
    logger.info("app_shutting_down")
    logger.info("app_stopped")


REQUEST_ID_HEADER = "X-Request-ID"


async def log_requests(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Bind a request id for every log line of the request and log its outcome."""
    request_id = bind_request_context(
        request.method,
        request.url.path,
        request.headers.get(REQUEST_ID_HEADER),
    )
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "request_completed",
        status_code=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
    )
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Image posts and feed API",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure properly for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.middleware("http")(log_requests)

    # Raised from dependencies (session lookup), outside any use case
    app.add_exception_handler(DomainError, domain_error_handler)

    app.include_router(auth_router)
    app.include_router(post_router)
    app.include_router(feed_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


# Create app instance
app = create_app()


def run() -> None:
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_config=None)
