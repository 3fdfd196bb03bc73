# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "")

from fanout_debugger.api.v1.dependencies import get_event_lock_service_dep
from fanout_debugger.db.session import Base
from fanout_debugger.db.session import get_db as app_get_session
from fanout_debugger.main import app as fastapi_app
from fanout_debugger.models import Follower, User
from fanout_debugger.repositories.fanout_repo import SqlAlchemyFanoutRepository
from fanout_debugger.services.event_lock import EventLockService
from fanout_debugger.services.fanout import FanoutService

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
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Repository writes commit, so each test wipes the tables afterwards.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def repo(db_session: Session) -> SqlAlchemyFanoutRepository:
    return SqlAlchemyFanoutRepository(db_session)


@pytest.fixture()
def fanout_service(repo: SqlAlchemyFanoutRepository) -> FanoutService:
    return FanoutService(repo)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def lock_service() -> EventLockService:
    """Process-local lock service that fails fast when an event is busy."""
    return EventLockService(None, timeout_seconds=5, blocking_seconds=0)


@pytest.fixture(autouse=True)
def override_lock_dependency(app: FastAPI, lock_service: EventLockService) -> Iterator[None]:
    app.dependency_overrides[get_event_lock_service_dep] = lambda: lock_service
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_event_lock_service_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[[str], User]:
    """Return a factory persisting users by username."""

    def _make_user(username: str) -> User:
        user = User(username=username, email=f"{username}@example.com")
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def follow(db_session: Session) -> Callable[[User, User], Follower]:
    """Return a helper creating a follower edge ``follower -> followed``."""

    def _follow(follower: User, followed: User) -> Follower:
        edge = Follower(user_id=follower.id, follows_user_id=followed.id)
        db_session.add(edge)
        db_session.commit()
        return edge

    return _follow


@pytest.fixture()
def social_graph(
    make_user: Callable[[str], User],
    follow: Callable[[User, User], Follower],
) -> dict[str, User]:
    """Users A (actor), B (target owner) and C, D following B."""
    users = {name: make_user(name) for name in ("alice", "bob", "carol", "dave")}
    follow(users["carol"], users["bob"])
    follow(users["dave"], users["bob"])
    return users
