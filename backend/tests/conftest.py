import os
from pathlib import Path

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_alerthub.db")
os.environ.setdefault("AUTH_ENABLED", "true")
os.environ.setdefault("AUTH_SHARED_TOKEN", "test-token")
os.environ.setdefault("REDACT_RAW_PAYLOADS", "true")

from alerthub.config import get_settings  # noqa: E402
from alerthub.storage.database import Base, SessionLocal, engine  # noqa: E402
from alerthub.storage.repositories import AlertHubRepository  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def repo(db) -> AlertHubRepository:
    return AlertHubRepository(db)


@pytest.fixture
def project(db, repo):
    row = repo.create_project(
        name="Demo Infrastructure",
        short_name="DEMO",
        webhook_key=os.urandom(16).hex(),
        created_by_id="admin",
    )
    db.commit()
    return row


def pytest_sessionstart(session):
    from alerthub.storage import db_models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def pytest_sessionfinish(session, exitstatus):
    engine.dispose()
    db_file = Path("test_alerthub.db")
    if db_file.exists():
        db_file.unlink()
