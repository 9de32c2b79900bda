# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")

from kettle_stage.api.v1.dependencies import create_admin_token
from kettle_stage.db.session import Base
from kettle_stage.db.session import get_db as app_get_session
from kettle_stage.main import app as fastapi_app
from kettle_stage.models import Kettle, Post
from kettle_stage.services.change_feed import ChangeHub, _ChangeHubSingleton

TEST_DB_URL = "sqlite://"

_KETTLE_COUNTER = count(1)
_POST_CLOCK = count(1)
_BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


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
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


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


@pytest.fixture(autouse=True)
def hub() -> Iterator[ChangeHub]:
    """Give every test a fresh process-wide change hub."""
    fresh = ChangeHub(retention=50)
    previous = _ChangeHubSingleton._instance
    _ChangeHubSingleton._instance = fresh
    try:
        yield fresh
    finally:
        _ChangeHubSingleton._instance = previous


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    """Return authorization headers carrying an admin token."""
    return {"Authorization": f"Bearer {create_admin_token()}"}


@pytest.fixture()
def make_kettle(db_session: Session) -> Callable[..., Kettle]:
    """Return a factory persisting kettles with unique slugs."""

    def _make(slug: str | None = None, *, name: str | None = None, is_active: bool = True) -> Kettle:
        number = next(_KETTLE_COUNTER)
        kettle = Kettle(
            slug=slug or f"kettle-{number}",
            name=name or f"Kettle {number}",
            description="Test kettle",
            icon="☕",
            is_active=is_active,
        )
        db_session.add(kettle)
        db_session.flush()
        db_session.refresh(kettle)
        return kettle

    return _make


@pytest.fixture()
def kettle(make_kettle: Callable[..., Kettle]) -> Kettle:
    """Create a default test kettle."""
    return make_kettle("tech-tea", name="Tech Tea")


@pytest.fixture()
def make_post(db_session: Session) -> Callable[..., Post]:
    """Return a factory persisting posts with strictly increasing timestamps."""

    def _make(
        kettle: Kettle,
        content: str = "Test tea",
        *,
        heat: int = 0,
        parent: Post | None = None,
        hidden: bool = False,
        created_at: datetime | None = None,
    ) -> Post:
        post = Post(
            kettle_id=kettle.id,
            content=content,
            heat_score=heat,
            parent_post_id=parent.id if parent is not None else None,
            anonymous_identity="Spicy Matcha",
            is_hidden=hidden,
            created_at=created_at or _BASE_TIME + timedelta(minutes=next(_POST_CLOCK)),
        )
        db_session.add(post)
        db_session.flush()
        db_session.refresh(post)
        return post

    return _make
