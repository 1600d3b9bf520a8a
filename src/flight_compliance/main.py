"""flight-compliance service entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from flight_compliance.adapters.jurisdiction_directory import JurisdictionDirectory
from flight_compliance.adapters.repositories import JurisdictionRepository
from flight_compliance.api.router import router
from flight_compliance.core.services import wait_for_pending_writes
from flight_compliance.database import (
    check_database,
    create_engine,
    create_session_factory,
)
from flight_compliance.errors import FlightComplianceError
from flight_compliance.observability import configure_logging, get_logger
from flight_compliance.settings import Settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle.

    Args:
        app: The FastAPI application instance.

    Yields:
        None
    """
    settings: Settings = app.state.settings
    logger.info("Service starting", service=settings.service_name, version=settings.version)
    yield
    await wait_for_pending_writes()
    await app.state.engine.dispose()
    logger.info("Service stopped", service=settings.service_name)


async def _handle_domain_error(request: Request, exc: FlightComplianceError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.message},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application.

    The engine, session factory and jurisdiction directory are created here
    and stored on ``app.state``; no connection is opened until first use.

    Args:
        settings: Service settings; read from the environment if omitted.

    Returns:
        The configured FastAPI application.
    """
    settings = settings or Settings()
    configure_logging(settings.log_level, settings.log_json)

    application = FastAPI(
        title=settings.service_name,
        version=settings.version,
        lifespan=lifespan,
    )

    engine = create_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_size=settings.database_pool_size,
    )
    session_factory = create_session_factory(engine)
    application.state.settings = settings
    application.state.engine = engine
    application.state.session_factory = session_factory
    application.state.jurisdiction_directory = JurisdictionDirectory(
        JurisdictionRepository(session_factory)
    )

    application.add_exception_handler(FlightComplianceError, _handle_domain_error)

    @application.get("/live", tags=["health"])
    async def live() -> dict[str, str]:
        """Liveness probe; never touches infrastructure."""
        return {"status": "ok"}

    @application.get("/ready", tags=["health"])
    async def ready() -> JSONResponse:
        """Readiness probe; checks the database answers."""
        if await check_database(application.state.session_factory):
            return JSONResponse({"status": "ok"})
        return JSONResponse({"status": "unavailable"}, status_code=503)

    application.include_router(router, prefix="/api/v1")
    return application


app: FastAPI = create_app()


def run() -> None:
    """Serve the module-level application with uvicorn."""
    settings: Settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
