from typing import Callable, Dict, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import app.main as main
from app.db.session import get_session
from app.models.blog import Blog, BlogStatus
from app.models.user import User
from app.services.realtime import ConnectionRegistry


class FakeChannel:
    """Stands in for a WebSocket; records every event pushed to it."""

    def __init__(self, fail: bool = False):
        self.events = []
        self.fail = fail

    async def send_json(self, data) -> None:
        if self.fail:
            raise RuntimeError("connection closed")
        self.events.append(data)


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="make_user")
def make_user_fixture(session: Session) -> Callable[..., User]:
    counter = {"n": 0}

    def _make_user(name: str = None, **fields) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"User {n}",
            email=fields.pop("email", f"user{n}@example.com"),
            password_hash="not-a-real-hash",
            **fields,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture(name="make_blog")
def make_blog_fixture(session: Session) -> Callable[..., Blog]:
    def _make_blog(author: User, category: str = "Tech", **fields) -> Blog:
        blog = Blog(
            user_id=author.id,
            title=fields.pop("title", f"{category} post"),
            content=fields.pop("content", "Body"),
            category=category,
            status=fields.pop("status", BlogStatus.PUBLISHED),
            **fields,
        )
        session.add(blog)
        session.commit()
        session.refresh(blog)
        return blog

    return _make_blog


@pytest.fixture(name="client")
def client_fixture(engine, monkeypatch):
    def get_session_override():
        with Session(engine) as session:
            yield session

    monkeypatch.setattr(main, "create_db_and_tables", lambda: SQLModel.metadata.create_all(engine))
    main.app.dependency_overrides[get_session] = get_session_override
    main.app.state.connections = ConnectionRegistry()
    # Entering the client keeps one event loop for HTTP calls and WebSockets
    with TestClient(main.app) as client:
        yield client
    main.app.dependency_overrides.clear()


@pytest.fixture(name="register")
def register_fixture(client: TestClient) -> Callable[..., Tuple[Dict[str, str], int]]:
    """Register a user over HTTP; returns (auth headers, user id)."""

    def _register(name: str, email: str = None, password: str = "secret123") -> Tuple[Dict[str, str], int]:
        email = email or f"{name.lower().replace(' ', '.')}@example.com"
        response = client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 200, response.text
        data = response.json()
        return {"Authorization": f"Bearer {data['token']}"}, data["user"]["id"]

    return _register
