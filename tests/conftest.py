import os
import sys

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from bandset.api import app  # noqa: E402
from bandset.db import get_db, init_db, make_engine  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(scope="session")
def pg_engine():
    """Engine on a throwaway PostgreSQL container, or skip when Docker is unavailable."""
    try:
        from testcontainers.postgres import PostgresContainer

        container = PostgresContainer("postgres:15")
        container.start()
    except Exception:  # pragma: no cover - depends on the environment
        pytest.skip("PostgreSQL container not available")
    engine = make_engine(container.get_connection_url())
    try:
        yield engine
    finally:
        engine.dispose()
        container.stop()


@pytest.fixture
def pg_db(pg_engine):
    from bandset.db import Base

    Base.metadata.drop_all(bind=pg_engine)
    init_db(bind=pg_engine)
    session = sessionmaker(bind=pg_engine, autoflush=False)()
    yield session
    session.close()
