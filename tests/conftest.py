"""Shared fixtures: in-memory database, repository and API client."""

import os

# Must be set before config.Settings is first instantiated
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FILE"] = ""
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["RATE_LIMIT"] = "1000/minute"

from datetime import datetime

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import build_engine, get_db, init_db
from repository import HabitRepository

# A Wednesday afternoon
NOW = datetime(2024, 6, 12, 15, 30)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def repo(db):
    return HabitRepository(db)


@pytest.fixture
def client(engine):
    from fastapi.testclient import TestClient
    import main

    TestSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestSession()
        try:
            yield session
        finally:
            session.close()

    main.app.dependency_overrides[get_db] = override_get_db
    main.app.dependency_overrides[main.get_now] = lambda: NOW
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


@pytest.fixture
def now():
    return NOW
