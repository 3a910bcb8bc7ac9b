"""Shared fixtures: a fresh SQLite file per test and an API client with a pinned clock."""
from __future__ import annotations

from datetime import date

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from recallbook import app
from recallbook.clock import get_today
from recallbook.config import settings
from recallbook.db.sqlite import create_project, get_db, init_sqlite, insert_questions
from recallbook.models.question import ReviewQuestionCreate

USER_ID = "user-1"
OTHER_USER_ID = "user-2"
TODAY = date(2030, 1, 15)


@pytest_asyncio.fixture
async def db(tmp_path):
    await init_sqlite(tmp_path)
    async for conn in get_db():
        yield conn


@pytest_asyncio.fixture
async def question(db):
    """One individually created question (no history row) in a fresh project."""
    project = await create_project(db, USER_ID, "sicp", title="SICP")
    created = await insert_questions(
        db,
        USER_ID,
        [
            ReviewQuestionCreate(
                project_id=project.id,
                question="What is a closure?",
                answer="A function together with its environment.",
            )
        ],
    )
    return created[0]


class Clock:
    def __init__(self, today: date) -> None:
        self.today = today


@pytest.fixture
def clock() -> Clock:
    return Clock(TODAY)


@pytest.fixture
def client(tmp_path, monkeypatch, clock):
    monkeypatch.setattr(settings, "data_dir", tmp_path)
    app.dependency_overrides[get_today] = lambda: clock.today
    with TestClient(app, headers={settings.user_header: USER_ID}) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def import_payload() -> dict:
    return {
        "data": {
            "date": "2030-01-15",
            "project": "sicp",
            "title": "Structure and Interpretation of Computer Programs",
            "author": "Abelson & Sussman",
            "chapter": 3,
            "chapter_title": "Modularity, Objects, and State",
            "topic": "Assignment and local state",
            "duration_minutes": 45,
            "understanding_level": 4,
            "key_concepts": ["closure", "environment model"],
            "review_questions": [
                {
                    "question": "What does set! change?",
                    "answer": "The binding of a variable in its environment.",
                    "explanation": "Assignment breaks the substitution model.",
                    "related_concepts": ["environment model"],
                    "difficulty_level": 3,
                },
                {
                    "question": "Why does the substitution model fail with assignment?",
                    "answer": "A name no longer denotes a single value.",
                },
            ],
        }
    }
