"""
tests/conftest.py -- Shared test fixtures for boilerplate integration tests.

This module provides:
  - _make_test_db(): creates an isolated SQLite database per test module
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient plus a user JWT for API integration tests

Design: TestClient runs sync route handlers in a thread pool, so the API
fixtures use a temporary SQLite file rather than ':memory:'. A plain
':memory:' database is per-connection and would present a blank schema to
each worker thread. Store unit tests run on one thread and use ':memory:'.

DEBUG and STATIC_FILES_DIR must be set before any project import so
get_settings() auto-generates SECRET_KEY in dev mode and uploads land in a
throwaway directory rather than the repository.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from collections.abc import Generator
from contextlib import asynccontextmanager, suppress
from pathlib import Path

# CRITICAL: Set before any auth/core import so get_settings() picks them up.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("STATIC_FILES_DIR", tempfile.mkdtemp(prefix="boilerplate-static-"))

import pytest
from fastapi.testclient import TestClient

from acl.store import ACLStore
from api.limiter import limiter
from api.main import app
from auth.store import UserStore
from auth.tokens import create_access_token
from cache.store import TokenCache
from core.config import get_settings
from core.db import Database
from files.storage import ensure_directories
from projects.store import ProjectStore

TEST_USERNAME = "testuser"
TEST_PASSWORD = "testpass123"

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_db(tmp_dir: Path, db_suffix: str) -> Database:
    """Create an isolated file-backed SQLite database for one test module.

    Args:
        tmp_dir:   Directory owned by pytest's tmp_path_factory.
        db_suffix: Unique string so test modules never share state.
    """
    return Database(f"sqlite:///{tmp_dir / f'test_{db_suffix}.db'}")


def _patch_lifespan(db: Database):
    """Return an async context manager that replaces the real lifespan.

    Wires a pre-created test database into app.state so TestClient routes see
    an isolated DB rather than the configured one.

    The purge_task is a long-sleeping coroutine that keeps asyncio happy
    (a real asyncio.Task is required; MagicMock would fail on .cancel()).
    """

    @asynccontextmanager
    async def test_lifespan(app):
        ensure_directories(get_settings().static_files_dir)
        app.state.db = db
        app.state.user_store = UserStore(db)
        app.state.acl = ACLStore(db)
        app.state.project_store = ProjectStore(db)
        app.state.token_cache = TokenCache()
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()
        with suppress(asyncio.CancelledError):
            await app.state.purge_task

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request, tmp_path_factory) -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, token, user_id) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use an isolated database. The test user
    is created before the client starts and the JWT is generated for use in
    Authorization headers.
    """
    suffix = request.module.__name__.rsplit(".", 1)[-1]
    db = _make_test_db(tmp_path_factory.mktemp(suffix), suffix)

    user = UserStore(db).create(TEST_USERNAME, TEST_PASSWORD)
    token = create_access_token(user_id=user.id, username=user.username, expire_seconds=3600)

    # Login counters are process-global; start every module with a clean slate.
    limiter.reset()
    app.router.lifespan_context = _patch_lifespan(db)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, user.id

    db.close()


@pytest.fixture
def memory_db() -> Generator[Database, None, None]:
    """Fresh in-memory database for single-threaded store unit tests."""
    db = Database("sqlite:///:memory:")
    yield db
    db.close()
