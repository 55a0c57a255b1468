"""
TagNotes Backend: Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test that touches the database gets its own SQLite file under
       pytest's tmp_path, so tests never share rows.

Fixtures:
    test_settings:  Settings pointing at a per-test SQLite file
    storage:        StorageService with the schema created
    notes_service:  NotesService over `storage`
    mock_storage:   AsyncMock standing in for StorageService (error paths)
    test_client:    HTTPX AsyncClient talking to a fresh app (lifespan run)
"""

import os
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Must be set before any tagnotes import; module-level settings read them.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test-notes.db"
os.environ["LOG_LEVEL"] = "WARNING"

from tagnotes.config import Settings  # noqa: E402
from tagnotes.database import build_engine  # noqa: E402
from tagnotes.services.notes_service import NotesService  # noqa: E402
from tagnotes.services.storage_service import StorageService  # noqa: E402


@pytest.fixture
def test_settings(tmp_path):
    """Settings for one test: its own database file, quiet logging."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'notes.db'}",
        log_level="WARNING",
        create_schema_on_startup=True,
    )


@pytest_asyncio.fixture
async def storage(test_settings):
    """A StorageService over an empty, fully created schema."""
    service = StorageService(build_engine(test_settings))
    await service.ensure_schema()
    yield service
    await service.close()


@pytest.fixture
def notes_service(storage):
    return NotesService(storage)


@pytest.fixture
def mock_storage():
    """
    StorageService double for driving NotesService error paths.

    Usage:
        mock_storage.get_by_id.return_value = None
        await NotesService(mock_storage).get_by_id(1)  # → NotFoundError
    """
    return AsyncMock(spec=StorageService)


@pytest.fixture
def sample_note_data():
    return {
        "title": "Shopping",
        "content": "Milk, eggs",
        "tags": "Food, urgent, food",
    }


@pytest_asyncio.fixture
async def test_client(test_settings):
    """
    Async HTTP client for endpoint tests.

    ASGITransport does not send lifespan events, so the app's lifespan is
    entered here; that builds storage, creates the schema and disposes the
    engine afterwards.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from tagnotes.main import create_app

    app = create_app(test_settings)
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            client.app = app
            yield client
