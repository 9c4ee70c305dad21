"""
Shared test fixtures for tabi-box.
"""
import os
import tempfile

# Settings are read at import time, so point them at throwaway resources first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="tabibox-static-")
os.environ["PUBLIC_BASE_URL"] = "http://testserver"
os.environ["DEFAULT_TIMEZONE"] = "Asia/Tokyo"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from app.main import app
from app.api.dependencies import get_blob_store
from app.core.storage import LocalBlobStore
from app.db.session import create_db_engine, get_db, init_db
from app.services import member_service, trip_service


@pytest.fixture
def engine():
    """In-memory SQLite database shared by every session of one test."""
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def blobs(tmp_path):
    return LocalBlobStore(str(tmp_path / "blobs"), "http://testserver", "/static")


@pytest.fixture
def client(session_factory, blobs):
    """API client wired to the test database and blob store."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blobs
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def trip(db):
    """A trip with no members or reservations."""
    return trip_service.create_trip("Graduation Trip 2026", "Okinawa", db)


@pytest.fixture
def members(db, trip):
    """Three members named Taro, Hanako and Jiro, in that order."""
    return [
        member_service.add_member(trip.id, name, emoji, db)
        for name, emoji in [("Taro", "👤"), ("Hanako", "🌸"), ("Jiro", "🐶")]
    ]
