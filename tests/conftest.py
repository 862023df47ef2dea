"""Pytest bootstrap configuration.

Ensure mandatory environment variables are set before test collection
and module imports that depend on application settings.
"""
import os
import tempfile

# Mandatory secret key for settings validation
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DEBUG", "false")
# Isolated SQLite file per test session
_DB_DIR = tempfile.mkdtemp(prefix="forum-tests-")
os.environ["DATABASE__URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"

import pytest_asyncio


@pytest_asyncio.fixture
async def db():
    """Fresh schema for each test; engine connections are released afterwards."""
    from infrastructure.database import create_tables, drop_tables, engine

    await create_tables()
    try:
        yield engine
    finally:
        await drop_tables()
        await engine.dispose()
