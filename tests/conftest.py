import os

# must be set before config.settings is imported anywhere
os.environ["SQLALCHEMY_DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.db import get_db, init_db
from main import app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def course(client):
    resp = client.post("/v1/courses/", json={"name": "Algebra I", "course_code": "MATH101", "credits": 3})
    assert resp.status_code == 201
    return resp.json()["data"]


@pytest.fixture
def students(client):
    created = []
    for i, (first, last) in enumerate([("Ada", "Lovelace"), ("Alan", "Turing"), ("Grace", "Hopper"), ("Edsger", "Dijkstra")]):
        resp = client.post("/v1/students/", json={
            "student_code": f"S-{i + 1:03d}",
            "first_name": first,
            "last_name": last,
            "grade_level": 10,
        })
        assert resp.status_code == 201
        created.append(resp.json()["data"])
    return created
