"""
Notes API - Test Configuration (conftest.py)
=============================================

What:  Shared pytest fixtures for the test suite.
How:   Storage tests run against a real SQLite database (aiosqlite) in a
       per-test temporary file; endpoint tests talk to the ASGI app through
       HTTPX without starting a server.

Fixtures:
    ├── store:        initialized NoteStore on a fresh SQLite file
    ├── test_client:  AsyncClient bound to create_app(store)
    ├── mock_store:   AsyncMock shaped like NoteStore (no database)
    └── mock_client:  AsyncClient bound to create_app(mock_store)
"""

import os
from unittest.mock import AsyncMock

# Settings are read on first import of notesapi.config
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from notesapi.main import create_app
from notesapi.services.note_store import NoteStore


def sqlite_url(path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
def db_url(tmp_path):
    """Connection string for a SQLite file unique to this test."""
    return sqlite_url(tmp_path / "notes.db")


@pytest_asyncio.fixture
async def store(db_url):
    """
    Provides an initialized NoteStore with an empty notes table.

    Usage:
        async def test_create(store):
            note_id = await store.create("A", "B")
    """
    note_store = await NoteStore.initialize(db_url)
    yield note_store
    await note_store.close()


@pytest.fixture
def mock_store():
    """
    Provides a NoteStore stand-in whose methods are AsyncMocks.

    Lets endpoint tests assert that invalid requests never reach storage.
    """
    return AsyncMock(spec=NoteStore)


@pytest_asyncio.fixture
async def test_client(store):
    """
    HTTPX AsyncClient wired to an app backed by the real SQLite store.

    Usage:
        async def test_get(test_client):
            response = await test_client.get("/api/v1/notes/1")
    """
    transport = ASGITransport(app=create_app(store))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def mock_client(mock_store):
    """HTTPX AsyncClient wired to an app backed by `mock_store`."""
    transport = ASGITransport(app=create_app(mock_store))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
