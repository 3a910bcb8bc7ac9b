from pydantic import BaseModel, Field


class ReviewQuestionCreate(BaseModel):
    project_id: str
    session_id: str | None = None
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    explanation: str | None = None
    why_important: str | None = None
    difficulty_level: int | None = Field(default=None, ge=1, le=5)
    related_concepts: list[str] | None = None


class ReviewQuestion(BaseModel):
    id: str
    user_id: str
    project_id: str
    session_id: str | None
    question: str
    answer: str
    explanation: str | None
    why_important: str | None
    difficulty_level: int | None
    related_concepts: list[str] | None
    created_at: str


class ReviewQuestionList(BaseModel):
    items: list[ReviewQuestion]
    total: int
    offset: int
    limit: int
