"""Main FastAPI application with live view WebSocket support."""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from roomrent.config.logging import get_logger
from roomrent.config.settings import Settings, settings as default_settings
from roomrent.api.v1.api import api_router
from roomrent.core.context import ClientContext
from roomrent.core.exceptions import (
    GENERIC_ERROR_MESSAGE,
    BackendError,
    NotAuthenticatedError,
    RedirectRequired,
    ValidationFailure,
)
from roomrent.core.middleware import (
    CorrelationIdMiddleware,
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from roomrent.services.connection_manager import manager

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    owns_context = app.state.context is None
    if owns_context:
        app.state.context = await ClientContext.create(settings)

    try:
        yield
    finally:
        await manager.disconnect_all()
        if owns_context:
            await app.state.context.close()
            app.state.context = None
        logger.info(f"{settings.PROJECT_NAME} stopped")


def create_app(context: Optional[ClientContext] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    ``context`` injects a ready client context (tests pass one backed by an
    in-memory backend); without it the lifespan connects to Supabase.
    """
    settings = settings or (context.settings if context else default_settings)
    is_prod = settings.ENVIRONMENT.lower() == "production"

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        openapi_url=None if is_prod else f"{settings.API_V1_STR}/openapi.json",
        docs_url=None if is_prod else "/docs",
        redoc_url=None if is_prod else "/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.context = context

    # Add middleware in order (last added = first executed)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.get("/")
    async def root():
        return {
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "docs": "/docs" if not is_prod else None,
            "environment": settings.ENVIRONMENT
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "version": settings.VERSION,
            "live_connections": len(manager.active_connections),
        }

    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RedirectRequired)
    async def redirect_handler(request: Request, exc: RedirectRequired):
        return RedirectResponse(url=exc.location, status_code=303)

    @app.exception_handler(NotAuthenticatedError)
    async def not_authenticated_handler(request: Request, exc: NotAuthenticatedError):
        return JSONResponse(
            status_code=401,
            content={"detail": exc.message},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(ValidationFailure)
    async def validation_failure_handler(request: Request, exc: ValidationFailure):
        return JSONResponse(
            status_code=422,
            content={"detail": [{"loc": ["body", exc.field], "msg": exc.message, "type": "value_error"}]},
        )

    @app.exception_handler(BackendError)
    async def backend_error_handler(request: Request, exc: BackendError):
        logger.warning(f"Backend error on {request.method} {request.url.path}: {exc.message} ({exc.code})")
        return JSONResponse(
            status_code=502,
            content={"detail": exc.message or GENERIC_ERROR_MESSAGE},
        )


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("roomrent.main:app", host=default_settings.HOST, port=default_settings.PORT, reload=default_settings.DEBUG)
