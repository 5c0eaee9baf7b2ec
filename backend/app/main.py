"""FastAPI application entrypoint and router wiring for the backend."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.api.bonuses import router as bonuses_router
from app.core.config import Settings, settings
from app.core.error_handling import install_error_handling
from app.core.logging import configure_logging, get_logger
from app.db.session import Database, get_database, init_db
from app.schemas.health import HealthStatusResponse, UnhealthyStatusResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

configure_logging()
logger = get_logger(__name__)
OPENAPI_TAGS = [
    {
        "name": "health",
        "description": "Service liveness/readiness probes used by infrastructure checks.",
    },
    {
        "name": "bonuses",
        "description": (
            "Employee bonus proposals: list, search by employee, and submit "
            "(one proposal per employee per calendar month)."
        ),
    },
]
DATABASE_DEP = Depends(get_database)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize the store before serving requests and release it on shutdown."""
    app_settings: Settings = app.state.settings
    database: Database = app.state.database
    logger.info(
        "app.lifecycle.starting",
        extra={
            "environment": app_settings.environment,
            "db_reset_on_startup": app_settings.db_reset_on_startup,
            "db_seed_sample_data": app_settings.db_seed_sample_data,
        },
    )
    # DatabaseInitializationError propagates: startup fails and the server exits.
    await init_db(
        database,
        max_attempts=app_settings.db_init_max_attempts,
        retry_delay_seconds=app_settings.db_init_retry_delay_seconds,
        reset=app_settings.db_reset_on_startup,
        seed=app_settings.db_seed_sample_data,
    )
    logger.info("app.lifecycle.started")
    try:
        yield
    finally:
        await database.dispose()
        logger.info("app.lifecycle.stopped")


async def api_health(database: Database = DATABASE_DEP) -> HealthStatusResponse | JSONResponse:
    """Readiness probe that round-trips a query to the store."""
    try:
        await database.ping()
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("app.health.store_unavailable", extra={"error": str(exc)})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=UnhealthyStatusResponse(status="unhealthy", error=str(exc)).model_dump(),
        )
    return HealthStatusResponse(status="healthy")


def healthz() -> HealthStatusResponse:
    """Lightweight liveness probe endpoint."""
    return HealthStatusResponse(status="healthy")


def create_app(
    app_settings: Settings | None = None,
    *,
    database: Database | None = None,
) -> FastAPI:
    """Build the application with an explicitly constructed store client."""
    app_settings = app_settings or settings
    app = FastAPI(
        title="Bonus Proposals API",
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=OPENAPI_TAGS,
    )
    app.state.settings = app_settings
    app.state.database = database or Database(app_settings.database_url)

    origins = [o.strip() for o in app_settings.cors_origins.split(",") if o.strip()]
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info("app.cors.enabled", extra={"origins_count": len(origins)})
    else:
        logger.info("app.cors.disabled")

    install_error_handling(app)

    app.add_api_route(
        "/healthz",
        healthz,
        methods=["GET"],
        tags=["health"],
        response_model=HealthStatusResponse,
        summary="Health Check",
    )

    api = APIRouter(prefix="/api")
    api.add_api_route(
        "/health",
        api_health,
        methods=["GET"],
        tags=["health"],
        response_model=HealthStatusResponse,
        summary="Readiness Check",
        responses={
            status.HTTP_500_INTERNAL_SERVER_ERROR: {
                "model": UnhealthyStatusResponse,
                "description": "Store is unreachable.",
            },
        },
    )
    api.include_router(bonuses_router)
    app.include_router(api)

    logger.debug("app.routes.registered", extra={"count": len(app.routes)})
    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn using configured host/port."""
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
