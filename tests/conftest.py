# Nombre de archivo: conftest.py
# Ubicación de archivo: tests/conftest.py
# Descripción: Configuraciones comunes para Pytest (PYTHONPATH, base SQLite en memoria y cliente de la API)

from __future__ import annotations

import os
import sys
from pathlib import Path
from urllib.parse import quote

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:  # pragma: no cover - inicialización
    sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENV", "test")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from db.base import Base  # noqa: E402
import db.models.coordinacion  # noqa: E402,F401
from db.models.coordinacion import UserProfile  # noqa: E402


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    db_session = session_factory()
    try:
        yield db_session
    finally:
        db_session.close()


@pytest.fixture
def app(session_factory):
    from api.app.main import app as api_app
    from db.session import get_session, get_session_factory

    def _override_session():
        db_session = session_factory()
        try:
            yield db_session
        finally:
            db_session.close()

    api_app.dependency_overrides[get_session] = _override_session
    api_app.dependency_overrides[get_session_factory] = lambda: session_factory
    yield api_app
    api_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(session):
    session.add(UserProfile(uid="admin-1", email="admin@example.org", display_name="Admin", role="admin"))
    session.commit()
    return {"X-User-Id": "admin-1", "X-User-Name": "Admin", "X-User-Email": "admin@example.org"}


@pytest.fixture
def user_headers():
    def _headers(uid: str, name: str) -> dict[str, str]:
        return {"X-User-Id": uid, "X-User-Name": quote(name)}

    return _headers
