"""Shared fixtures: app on a temporary SQLite file, fake LLM, signed-in users."""
import json
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text

from cardforge.core.config import Settings
from cardforge.main import create_app


def flashcards_json(count: int = 5) -> str:
    return json.dumps([{"question": f"Question {i}", "answer": f"Answer {i}"} for i in range(count)])


def quiz_items(count: int = 5, options: int = 4) -> list[dict]:
    items = []
    for i in range(count):
        opts = [f"q{i} option {j}" for j in range(options)]
        items.append({"question": f"Quiz question {i}", "options": opts, "correctAnswer": opts[1]})
    return items


def recommendations_json() -> str:
    return json.dumps([
        {"title": "Review the basics", "description": "Revisit the flashcards you missed."},
        {"title": "Go deeper", "description": "Try a related advanced topic."},
        {"title": "Practice daily", "description": "Take one short quiz every day."},
    ])


class FakeCompletionClient:
    """Mock LLM: returns queued replies in order and records every prompt."""

    def __init__(self) -> None:
        self.replies: list[Any] = []
        self.prompts: list[str] = []

    def queue(self, *replies: Any) -> None:
        self.replies.extend(replies)

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise AssertionError(f"Unexpected LLM call: {prompt[:80]}")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "test.db")


@pytest.fixture
def settings(db_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{db_path}",
        auth_jwt_secret="test-secret",
        groq_api_key=None,
        log_level="WARNING",
    )


@pytest.fixture
def llm() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def app(settings, llm):
    return create_app(settings, completion_client=llm)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


def register(client: TestClient, email: str, password: str = "password123") -> dict:
    resp = client.post("/api/auth/register", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()


@pytest.fixture
def auth_headers(client) -> dict:
    token = register(client, "alice@example.com")["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_headers(client) -> dict:
    token = register(client, "bob@example.com")["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def count_rows(db_path):
    """Count rows straight from the database file, bypassing the app."""
    engine = create_engine(f"sqlite:///{db_path}")

    def count(table: str, where: str = "", **params) -> int:
        sql = f"SELECT COUNT(*) FROM {table}" + (f" WHERE {where}" if where else "")
        with engine.connect() as conn:
            return conn.execute(text(sql), params).scalar_one()

    yield count
    engine.dispose()
