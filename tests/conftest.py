import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_REDIS_ENABLED", "false")
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")

from typing import Dict, Generator  # noqa: E402
from unittest.mock import patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.db.base import Base  # noqa: E402
from app.db.session import get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.security.rate_limit.limiter import default_store  # noqa: E402
from app.security.rate_limit.service import rate_limiter  # noqa: E402


@pytest.fixture(scope="session")
def db_engine():
    """Yield a SQLAlchemy engine for an in-memory SQLite database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture()
def db_session(db_engine) -> Generator[Session, None, None]:
    Base.metadata.create_all(bind=db_engine)
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = session_local()
    yield session
    session.close()
    Base.metadata.drop_all(bind=db_engine)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    rate_limiter.reset()
    default_store.reset()
    yield
    rate_limiter.reset()
    default_store.reset()


@pytest.fixture()
def client(db_engine, db_session) -> Generator[TestClient, None, None]:
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        db = session_local()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def csrf_headers(client: TestClient) -> Dict[str, str]:
    """Fetch a CSRF token; the client keeps the matching cookie."""
    res = client.get("/api/csrf-token")
    assert res.status_code == 200
    return {"X-CSRF-Token": res.json()["token"]}


@pytest.fixture()
def enqueue_mock():
    with patch("app.api.v1.leads.enqueue_lead_notification", return_value=True) as m:
        yield m
