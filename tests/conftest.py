# tests/conftest.py

import os

# Must be set before llamaio.database builds its engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RECONCILE_INTERVAL_MINUTES"] = "0"

import pytest
from fastapi.testclient import TestClient

from llamaio.database import Base, SessionLocal, engine
from main import app


@pytest.fixture(autouse=True)
def tables():
    """Fresh in-memory tables for every test"""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture()
def make_user(client):
    """POST a user and return its document"""
    counter = {"n": 0}

    def _make(name=None, email=None):
        counter["n"] += 1
        body = {
            "name": name or f"User {counter['n']}",
            "email": email or f"user{counter['n']}@llama.io",
        }
        response = client.post("/users", json=body)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture()
def make_task(client):
    """POST a task and return its document"""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        body = {"name": f"Task {counter['n']}", "deadline": "2030-01-01T00:00:00Z"}
        body.update(overrides)
        response = client.post("/tasks", json=body)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make
