"""Shared fixtures: every test gets its own in-memory catalog database."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from catalog import CatalogStore
from database import build_engine, get_read_session, get_write_session
from main import app


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def catalog(session) -> CatalogStore:
    return CatalogStore(session)


@pytest.fixture
def client(engine):
    def session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_read_session] = session_override
    app.dependency_overrides[get_write_session] = session_override
    yield TestClient(app)
    app.dependency_overrides.clear()
