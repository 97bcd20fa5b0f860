from datetime import date
from itertools import count

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from services import TaskService

from .fakes import FakeDatabase, InMemoryTaskRepository

TODAY = date(2024, 3, 10)


@pytest.fixture()
def repo() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture()
def service(repo: InMemoryTaskRepository) -> TaskService:
    """Service with deterministic ids (t1, t2, ...) and a fixed clock."""
    ids = count(1)
    return TaskService(repo, id_factory=lambda: f"t{next(ids)}", today=lambda: TODAY)


@pytest.fixture()
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        DATABASE_URL="",
        CORS_ORIGINS=["http://localhost:5173"],
    )


@pytest.fixture()
def client(settings: Settings, repo: InMemoryTaskRepository):
    app = create_app(settings=settings, repository=repo)
    with TestClient(app) as c:
        yield c
