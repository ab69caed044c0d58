"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from paperledger import __version__
from paperledger.config.settings import get_settings
from paperledger.config.logging_config import setup_logging
from paperledger.repositories.sqlalchemy.database import init_db
from paperledger.api.routers import account_router, orders_router, watchlist_router
from paperledger.core.exceptions import AppError, NotFoundError, StaleStateError, StorageError


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging()
    init_db()
    yield
    # Shutdown (nothing to clean up)


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Simulated brokerage account for paper trading",
    version=__version__,
    lifespan=lifespan,
)

# Include routers
app.include_router(account_router)
app.include_router(orders_router)
app.include_router(watchlist_router)


def _status_for(exc: AppError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, StaleStateError):
        return 409
    if isinstance(exc, StorageError):
        return 503
    return 400


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    return JSONResponse(
        status_code=_status_for(exc),
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": __version__,
        "docs": "/docs",
    }
