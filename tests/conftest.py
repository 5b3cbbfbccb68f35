"""
Test configuration and fixtures for ComplyAI Search.

Every test that touches the database gets its own throwaway SQLite file, and
the external collaborators (browser, axe, OpenAI) are replaced by the fakes
in tests/fakes.py.
"""

import os
import tempfile
from typing import Generator

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from fastapi.testclient import TestClient

load_dotenv()

# Must be set before complyai.platform.config is imported
test_db_url = os.getenv("TEST_DATABASE_URL")
if test_db_url:
    os.environ["DATABASE_URL"] = test_db_url
else:
    test_db_path = tempfile.mktemp(suffix=".db")
    os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{test_db_path}"
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "complyai-test-logs"))

from complyai.platform.db.session import build_engine, build_sessionmaker, init_db  # noqa: E402
from complyai.features.websites.services.store import PersistenceStore  # noqa: E402


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'complyai-test.db'}")
    await init_db(engine)
    yield build_sessionmaker(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def store(session_factory):
    return PersistenceStore(session_factory)


@pytest.fixture(scope="session")
def test_app():
    from complyai.main import app

    return app


@pytest.fixture(scope="function")
def client(test_app) -> Generator[TestClient, None, None]:
    with TestClient(test_app) as test_client:
        yield test_client
