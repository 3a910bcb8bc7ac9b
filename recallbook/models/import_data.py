from typing import Any

from pydantic import BaseModel, Field


class ImportQuestion(BaseModel):
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    explanation: str | None = None
    why_important: str | None = None
    related_concepts: list[str] | None = None
    difficulty_level: int | None = Field(default=None, ge=1, le=5)


class ImportData(BaseModel):
    """One study session as exported by the tutor, plus its review questions."""

    date: str = Field(min_length=1)
    project: str = Field(min_length=1)
    title: str | None = None
    author: str | None = None
    chapter: int | None = None
    chapter_title: str | None = None
    topic: str | None = None
    duration_minutes: int | None = Field(default=None, ge=0)
    understanding_level: int | None = Field(default=None, ge=1, le=5)
    key_concepts: list[str] | None = None
    review_questions: list[ImportQuestion] = Field(default_factory=list)

    def raw(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ImportRequest(BaseModel):
    data: ImportData


class ImportResult(BaseModel):
    success: bool = True
    session_id: str
    project_id: str
    questions_count: int
    question_ids: list[str]
