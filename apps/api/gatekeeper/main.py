"""
FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gatekeeper.core.config import settings
from gatekeeper.core.logging import configure_logging
from gatekeeper.api.routes import router as api_router
from gatekeeper.api.middleware.logging import LoggingMiddleware
from gatekeeper.api.middleware.request_id import RequestIdMiddleware
from gatekeeper.implementations.register import register_backends
from gatekeeper.models.database import close_db
from gatekeeper.utils.reporting import init_error_tracking, report_exception

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events."""
    configure_logging()
    tracking = init_error_tracking(settings)
    register_backends()

    logger.info(
        "Starting",
        app=settings.app_name,
        environment=settings.environment,
        audit_sink=settings.audit.sink,
        error_tracking=tracking,
    )

    yield

    await close_db()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # Middleware (order matters - last added is outermost)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes
    app.include_router(api_router, prefix="/api")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Report unexpected errors and return a generic 500."""
        report_exception(exc, "Unhandled exception", path=request.url.path, method=request.method)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": str(exc) if settings.debug else "An error occurred",
            },
        )

    @app.get("/health")
    async def health_check():
        """Quick health check endpoint (for load balancers)."""
        return {
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.environment,
        }

    @app.get("/health/detailed")
    async def health_check_detailed():
        """Database check, plus the broker when audit records are queued."""
        from gatekeeper.utils.health import HealthChecker, check_broker, check_database
        from gatekeeper.models.database import async_session_factory

        checker = HealthChecker(
            version=settings.app_version,
            environment=settings.environment,
        )

        async def db_check():
            async with async_session_factory() as session:
                return await check_database(session)

        checker.add_check("database", db_check)

        if settings.audit.sink == "queue":
            checker.add_check("broker", lambda: check_broker(settings.queue.broker_url))

        health = await checker.run()
        status_code = 200 if health.status.value == "healthy" else 503
        return JSONResponse(content=health.to_dict(), status_code=status_code)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "gatekeeper.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        workers=settings.workers,
    )
