"""Pytest fixtures for Mongster tests.

Provides reusable test fixtures for:
- In-memory SQLite mail store
- Message record factory
- Application context with an SMTP acceptor bound to a free port
- FastAPI test client

Usage:
    def test_listing(client, store, make_record):
        store.insert(make_record())
        assert len(client.get("/messages").json()["messages"]) == 1
"""

import socket
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from mongster.config import Settings
from mongster.context import AppContext
from mongster.database import create_db_engine, create_session_factory, init_schema
from mongster.domain.mail.models import MessageHeader, MessageRecord
from mongster.infrastructure.ingest.acceptor import SmtpAcceptor
from mongster.infrastructure.store.sql_mail_store import SqlMailStore
from mongster.main import create_app


def find_free_port() -> int:
    """Ask the OS for an unused TCP port on the loopback interface."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Fresh in-memory database per test"""
    engine = create_db_engine("sqlite://")
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine) -> SqlMailStore:
    return SqlMailStore(create_session_factory(engine))


@pytest.fixture
def make_record():
    """Factory for valid message records.

    Keyword arguments override the defaults; pass ``from_`` for the sender.
    """
    def _make(**overrides) -> MessageRecord:
        data = {
            "date": "Mon, 5 Jan 2026 10:00:00 +0000",
            "subject": "Hello",
            "to": ["alice@example.com"],
            "from_": "sender@example.com",
            "cc": [],
            "reply_to": None,
            "headers": [MessageHeader.of("Subject", overrides.get("subject", "Hello"))],
            "body": "Hi there",
        }
        data.update(overrides)
        return MessageRecord(**data)

    return _make


@pytest.fixture
def settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite://",
        SMTP_HOST="127.0.0.1",
        SMTP_PORT=find_free_port(),
        POLL_INTERVAL_SECONDS=30.0,
        ACCEPTOR_BUFFER_SIZE=10,
        LOG_JSON=False,
    )


@pytest.fixture
def context(settings) -> Generator[AppContext, None, None]:
    """Application context with a stopped acceptor"""
    context = AppContext.from_settings(settings)
    yield context
    context.close()


@pytest.fixture
def client(context) -> Generator[TestClient, None, None]:
    app = create_app(context)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def running_acceptor(store) -> Generator[SmtpAcceptor, None, None]:
    """SMTP acceptor listening on a free loopback port"""
    acceptor = SmtpAcceptor(store, hostname="127.0.0.1", port=find_free_port(), buffer_size=10)
    acceptor.start()
    yield acceptor
    acceptor.stop()
