import os
import time
import pytest
from typing import AsyncGenerator, Generator
from httpx import ASGITransport, AsyncClient
from fastapi import FastAPI

from patient_registry.core.config import Settings
from patient_registry.domain.patients.service import PatientService
from patient_registry.infrastructure.database import Database
from patient_registry.main import create_app


@pytest.fixture(scope="function")
def database_url(tmp_path) -> str:
    """A fresh SQLite file per test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'patients.db'}"


@pytest.fixture(scope="function")
async def database(database_url: str) -> AsyncGenerator[Database, None]:
    """An unopened database; tests decide when it is acquired."""
    db = Database(database_url)
    try:
        yield db
    finally:
        await db.dispose()


@pytest.fixture(scope="function")
def patient_service(database: Database) -> PatientService:
    return PatientService(database)


@pytest.fixture(scope="function")
def test_settings(database_url: str) -> Settings:
    return Settings(DATABASE_URL=database_url, PROJECT_NAME="Patient Registry Test")


async def _started_app(app_settings: Settings) -> FastAPI:
    application = create_app(app_settings)
    await application.state.database_state.initialize()
    return application


@pytest.fixture(scope="function")
async def app(test_settings: Settings) -> AsyncGenerator[FastAPI, None]:
    """Application with startup initialization already run."""
    application = await _started_app(test_settings)
    yield application
    await application.state.database.dispose()


@pytest.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture(scope="function")
async def failed_client() -> AsyncGenerator[AsyncClient, None]:
    """Client for an application whose database could not be opened."""
    application = await _started_app(Settings(DATABASE_URL="nosuchdialect://nowhere"))
    async with AsyncClient(transport=ASGITransport(app=application), base_url="http://test") as ac:
        yield ac


@pytest.fixture(scope="function")
def sample_patient_data() -> dict:
    """Sample patient data for testing."""
    return {
        "first_name": "Ana",
        "last_name": "Rao",
        "date_of_birth": "1990-05-01",
        "gender": "female",
    }


@pytest.fixture(scope="function")
def tokyo_timezone() -> Generator[None, None, None]:
    """Run with a local zone whose midnight falls before UTC midnight."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    previous = os.environ.get("TZ")
    os.environ["TZ"] = "JST-9"
    time.tzset()
    try:
        yield
    finally:
        if previous is None:
            os.environ.pop("TZ", None)
        else:
            os.environ["TZ"] = previous
        time.tzset()


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "patients: mark test as patient management related"
    )
    config.addinivalue_line(
        "markers", "query: mark test as query console related"
    )
    config.addinivalue_line(
        "markers", "readiness: mark test as database readiness related"
    )
