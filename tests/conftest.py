# tests/conftest.py
from __future__ import annotations

import itertools
import os
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from heychat.core.security import create_access_token
from heychat.db.session import Base
from heychat.db.session import get_db as app_get_session
from heychat.main import app as fastapi_app
from heychat.models import Chat, Message, User
from heychat.models.chat import CHAT_STATUS_ACCEPTED, ordered_pair
from heychat.realtime import RealtimeHub, SqlChatStore

_CONNECTION_IDS = itertools.count(1)


class FakeConnection:
    """Connection handle that records every frame sent to it."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        self.connection_id = next(_CONNECTION_IDS)
        self.frames: list[tuple[str, dict[str, Any]]] = []
        self._closed = False
        self.close_code: int | None = None

    def __repr__(self) -> str:
        return f"<FakeConnection #{self.connection_id} user={self.user_id}>"

    @property
    def closed(self) -> bool:
        return self._closed

    def mark_closed(self) -> None:
        self._closed = True

    async def close(self, code: int = 1000) -> None:
        self.close_code = code
        self._closed = True

    async def send(self, event: str, data: dict[str, Any]) -> bool:
        if self._closed:
            return False
        self.frames.append((event, data))
        return True

    @property
    def events(self) -> list[str]:
        return [event for event, _ in self.frames]

    def payloads(self, event: str) -> list[dict[str, Any]]:
        return [data for name, data in self.frames if name == event]

    def clear(self) -> None:
        self.frames.clear()


@pytest.fixture()
def engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_engine(
        f"sqlite:///{tmp_path / 'heychat-test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(session_factory: sessionmaker[Session]) -> SqlChatStore:
    return SqlChatStore(session_factory)


@pytest.fixture()
def hub(store: SqlChatStore) -> RealtimeHub:
    return RealtimeHub(store)


@pytest.fixture()
def app(hub: RealtimeHub, db_session: Session) -> Iterator[FastAPI]:
    def _get_session_override() -> Iterator[Session]:
        yield db_session

    previous_hub = fastapi_app.state.hub
    fastapi_app.state.hub = hub
    fastapi_app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield fastapi_app
    finally:
        fastapi_app.dependency_overrides.pop(app_get_session, None)
        fastapi_app.state.hub = previous_hub


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Factory persisting users with sensible defaults."""

    def _make_user(username: str, **fields: Any) -> User:
        fields.setdefault("display_name", username.title())
        user = User(username=username, **fields)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def make_chat(db_session: Session) -> Callable[..., Chat]:
    """Factory for conversations, accepted unless told otherwise."""

    def _make_chat(user_a: User, user_b: User, status: str = CHAT_STATUS_ACCEPTED) -> Chat:
        low, high = ordered_pair(user_a.id, user_b.id)
        chat = Chat(user_low_id=low, user_high_id=high, status=status, requested_by_id=user_a.id)
        db_session.add(chat)
        db_session.commit()
        db_session.refresh(chat)
        return chat

    return _make_chat


@pytest.fixture()
def make_message(db_session: Session) -> Callable[..., Message]:
    """Factory for messages stored directly, bypassing the router."""

    def _make_message(chat: Chat, sender: User, receiver: User, content: str = "hello", **fields: Any) -> Message:
        message = Message(
            chat_id=chat.id,
            sender_id=sender.id,
            receiver_id=receiver.id,
            content=content,
            **fields,
        )
        db_session.add(message)
        db_session.commit()
        db_session.refresh(message)
        return message

    return _make_message


@pytest.fixture()
def alice(make_user: Callable[..., User]) -> User:
    return make_user("alice")


@pytest.fixture()
def bob(make_user: Callable[..., User]) -> User:
    return make_user("bob")


@pytest.fixture()
def conversation(make_chat: Callable[..., Chat], alice: User, bob: User) -> Chat:
    return make_chat(alice, bob)


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}
