# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from verser.api.v1.dependencies import get_relay_hub
from verser.core.settings import settings
from verser.db.session import Base
from verser.main import app as fastapi_app
from verser.models import Community, CommunityMember, CommunityRole, User
from verser.services.relay import RelayHub
from verser.storage import MemoryStorage, SqlStorage, get_storage

TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> Iterator[sessionmaker[Session]]:
    factory = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    try:
        yield factory
    finally:
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def sql_storage(session_factory: sessionmaker[Session]) -> SqlStorage:
    return SqlStorage(session_factory)


@pytest.fixture()
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture(params=["memory", "sql"])
def storage(request: pytest.FixtureRequest) -> MemoryStorage | SqlStorage:
    """Run a test once against each backend."""
    return request.getfixturevalue(f"{request.param}_storage")


@pytest.fixture()
def relay_hub(memory_storage: MemoryStorage) -> RelayHub:
    """Hub used by the /ws endpoint; backed by process-local storage."""
    return RelayHub(memory_storage, heartbeat_interval=3600)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    sql_storage: SqlStorage,
    relay_hub: RelayHub,
) -> Iterator[None]:
    app.dependency_overrides[get_storage] = lambda: sql_storage
    app.dependency_overrides[get_relay_hub] = lambda: relay_hub
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_storage, None)
        app.dependency_overrides.pop(get_relay_hub, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def make_token(user_id: int) -> str:
    return jwt.encode({"sub": str(user_id)}, settings.secret_key, algorithm=settings.jwt_algorithm)


def _add_user(db: Session, username: str) -> User:
    user = User(username=username, email=f"{username}@example.com", password_hash="hashed")
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def token_headers():
    """Build bearer headers for an arbitrary user id."""

    def _headers(user_id: int) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id)}"}

    return _headers


@pytest.fixture()
def test_user(db_session: Session) -> User:
    """Create and return a persisted test user."""
    return _add_user(db_session, "alex_johnson")


@pytest.fixture()
def other_user(db_session: Session) -> User:
    """Create and return a second persisted user."""
    return _add_user(db_session, "jane_smith")


@pytest.fixture()
def third_user(db_session: Session) -> User:
    return _add_user(db_session, "sarah_chen")


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return {"Authorization": f"Bearer {make_token(test_user.id)}"}


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return {"Authorization": f"Bearer {make_token(other_user.id)}"}


@pytest.fixture()
def third_auth_token(third_user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(third_user.id)}"}


@pytest.fixture()
def community(db_session: Session) -> Community:
    """Create a default test community with no members."""
    community = Community(name="Web Developers", description="Share knowledge")
    db_session.add(community)
    db_session.commit()
    return community


@pytest.fixture()
def add_member(db_session: Session):
    """Insert a membership row directly, bumping member_count like storage does."""

    def _add(user: User, community: Community, role: CommunityRole = CommunityRole.MEMBER) -> None:
        db_session.add(
            CommunityMember(user_id=user.id, community_id=community.id, role=role.value)
        )
        db_session.get(Community, community.id).member_count += 1
        db_session.commit()

    return _add
