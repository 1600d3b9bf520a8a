"""Basic smoke tests for flight-compliance.

These tests verify the service starts correctly and health endpoints respond.
They run against a throwaway SQLite database.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from flight_compliance import main


@pytest.mark.asyncio
async def test_liveness_endpoint_returns_200(client: AsyncClient) -> None:
    """Liveness probe must return 200 OK with no dependencies."""
    response = await client.get("/live")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_readiness_endpoint_checks_database(client: AsyncClient) -> None:
    """Readiness probe answers 200 when the database responds."""
    response = await client.get("/ready")

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_readiness_endpoint_reports_unavailable_database(client: AsyncClient) -> None:
    """Readiness probe answers 503 when the database check fails."""
    with patch("flight_compliance.main.check_database", AsyncMock(return_value=False)):
        response = await client.get("/ready")

    assert response.status_code == 503
    assert response.json() == {"status": "unavailable"}


@pytest.mark.asyncio
async def test_docs_endpoint_is_accessible(client: AsyncClient) -> None:
    """Swagger UI docs endpoint must be accessible."""
    response = await client.get("/docs")

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_openapi_schema_includes_compliance_routes(client: AsyncClient) -> None:
    """OpenAPI schema must include every compliance route path."""
    response = await client.get("/openapi.json")

    assert response.status_code == 200
    paths = response.json().get("paths", {})

    expected_paths = [
        "/api/v1/compliance/regulations",
        "/api/v1/compliance/context",
        "/api/v1/compliance/jurisdictions/resolve",
    ]

    for path in expected_paths:
        assert path in paths, f"Expected route {path!r} not found in OpenAPI schema"


def test_run_serves_app_with_configured_address() -> None:
    """The console entry point hands the module-level app to uvicorn."""
    settings = main.app.state.settings

    with patch("flight_compliance.main.uvicorn.run") as uvicorn_run:
        main.run()

    uvicorn_run.assert_called_once_with(main.app, host=settings.host, port=settings.port)
    assert isinstance(uvicorn_run.call_args.args[0], FastAPI)
