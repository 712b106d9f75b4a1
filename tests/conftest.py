# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "pinloop-test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from pinloop.core.security import create_access_token
from pinloop.core.settings import Settings
from pinloop.db.session import Base
from pinloop.db.session import get_db as app_get_session
from pinloop.main import app as fastapi_app
from pinloop.models import Conversation, Message, UserProfile
from pinloop.repositories import sorted_pair
from pinloop.services.gateway import RealtimeGateway
from pinloop.services.presence import PresenceRegistry

TEST_DB_URL = "sqlite://"

_TEST_SETTINGS_INSTANCE = Settings()


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
    # Commits and rollbacks inside the app act on savepoints of the outer transaction.
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
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
def gateway(app: FastAPI) -> Iterator[RealtimeGateway]:
    """Give each test its own presence registry and gateway."""
    previous = (app.state.presence, app.state.gateway)
    presence = PresenceRegistry()
    app.state.presence = presence
    app.state.gateway = RealtimeGateway(presence)
    try:
        yield app.state.gateway
    finally:
        app.state.presence, app.state.gateway = previous


@pytest.fixture()
def presence(gateway: RealtimeGateway) -> PresenceRegistry:
    return gateway.presence


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide a Settings instance aligned with runtime configuration."""
    return _TEST_SETTINGS_INSTANCE


def bearer(user_id: str, username: str | None = None, avatar: str | None = None) -> dict[str, str]:
    """Authorization headers for a token issued to ``user_id``."""
    token = create_access_token(user_id, username or user_id, avatar=avatar)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., UserProfile]:
    """Factory persisting a user profile."""

    def _make(user_id: str, username: str | None = None, avatar: str | None = None) -> UserProfile:
        profile = UserProfile(id=user_id, username=username or user_id.title(), avatar=avatar)
        db_session.add(profile)
        db_session.flush()
        return profile

    return _make


@pytest.fixture()
def test_user(make_user: Callable[..., UserProfile]) -> UserProfile:
    """Create and return the primary test user."""
    return make_user("alice", "Alice", "https://img.example/alice.png")


@pytest.fixture()
def other_user(make_user: Callable[..., UserProfile]) -> UserProfile:
    """Create and return a second user."""
    return make_user("bob", "Bob", "https://img.example/bob.png")


@pytest.fixture()
def third_user(make_user: Callable[..., UserProfile]) -> UserProfile:
    return make_user("carol", "Carol")


@pytest.fixture()
def auth_token(test_user: UserProfile) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return bearer(test_user.id, test_user.username, test_user.avatar)


@pytest.fixture()
def other_auth_token(other_user: UserProfile) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return bearer(other_user.id, other_user.username, other_user.avatar)


@pytest.fixture()
def third_auth_token(third_user: UserProfile) -> dict[str, str]:
    return bearer(third_user.id, third_user.username)


@pytest.fixture()
def conversation(
    db_session: Session,
    test_user: UserProfile,
    other_user: UserProfile,
) -> Conversation:
    """Conversation started by the primary user with the second user."""
    low, high = sorted_pair(test_user.id, other_user.id)
    conv = Conversation(
        initiator_id=test_user.id,
        recipient_id=other_user.id,
        user_low_id=low,
        user_high_id=high,
    )
    db_session.add(conv)
    db_session.flush()
    return conv


@pytest.fixture()
def add_message(db_session: Session) -> Callable[..., Message]:
    """Factory inserting a message directly, bypassing the summary update."""

    def _add(conversation: Conversation, sender_id: str, content: str, **fields: Any) -> Message:
        message = Message(
            conversation_id=conversation.id,
            sender_id=sender_id,
            content=content,
            **fields,
        )
        db_session.add(message)
        db_session.flush()
        return message

    return _add


@pytest.fixture()
def auth_for() -> Callable[..., dict[str, str]]:
    """Factory building authorization headers for arbitrary user ids."""
    return bearer
