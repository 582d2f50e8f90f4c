"""
Main FastAPI application entry point.
"""
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from garage_api.config import get_settings
from garage_api.database import close_db, init_db
from garage_api.errors import register_exception_handlers
from garage_api.logging import RequestIdMiddleware, setup_logging
from garage_api.routers import bookings, vehicles

settings = get_settings()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan events for the application.
    Handles startup and shutdown events.
    """
    logger.info("startup", app=settings.app_name, version=settings.app_version)
    await init_db()
    logger.info("database_initialized", api_prefix=settings.api_v1_prefix)

    yield

    await close_db()
    logger.info("shutdown")


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="""
        ## Garage Booking API

        Vehicles, AI vehicle images, overview metrics and service bookings
        for garages and their clients.

        ### Entities:
        * **Vehicles**: Owned by a user, a garage, or an unregistered owner
        * **Bookings**: Scheduled service visits with a confirm / cancel / complete lifecycle
        * **Audit log**: Append-only record of sensitive actions
        """,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    # Include routers
    app.include_router(vehicles.router, prefix=settings.api_v1_prefix)
    app.include_router(bookings.router, prefix=settings.api_v1_prefix)
    app.include_router(bookings.public_router, prefix=settings.api_v1_prefix)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Welcome to Garage Booking API",
            "version": settings.app_version,
            "docs": "/docs",
            "redoc": "/redoc",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": settings.app_version,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "garage_api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
