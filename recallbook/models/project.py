from typing import Any

from pydantic import BaseModel


class Project(BaseModel):
    id: str
    user_id: str
    name: str           # unique per user; import payloads refer to projects by name
    title: str
    author: str | None
    total_chapters: int | None
    current_chapter: int
    created_at: str
    updated_at: str


class ProjectList(BaseModel):
    items: list[Project]
    total: int


class LearningSession(BaseModel):
    id: str
    user_id: str
    project_id: str
    date: str
    chapter: int | None
    chapter_title: str | None
    topic: str | None
    duration_minutes: int | None
    understanding_level: int | None
    key_concepts: list[str] | None
    raw_data: dict[str, Any] | None
    created_at: str


class LearningSessionList(BaseModel):
    items: list[LearningSession]
    total: int
