from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel

from recallbook.models.question import ReviewQuestion


class ReviewHistory(BaseModel):
    id: str
    user_id: str
    question_id: str
    seq: int                    # per-question insertion order, breaks reviewed_at ties
    reviewed_at: str            # UTC ISO-8601 with microseconds
    self_rating: int | None     # None = initial row written at import time
    next_review_date: date
    interval_days: int
    ease_factor: float
    repetitions: int


class ReviewHistoryList(BaseModel):
    items: list[ReviewHistory]
    total: int


class ReviewRequest(BaseModel):
    question_id: str
    # Range is checked by the service so out-of-range ratings map to 400
    self_rating: int
    reviewed_at: datetime | None = None


class ReviewResult(BaseModel):
    next_review_date: date
    interval_days: int
    ease_factor: float
    repetitions: int


class DueQuestion(ReviewQuestion):
    last_review: ReviewHistory | None = None   # None = never reviewed


class DueQuestionList(BaseModel):
    count: int
    questions: list[DueQuestion]


class RatingPreview(BaseModel):
    rating: int
    next_review_date: date
    interval_days: int
    ease_factor: float
    repetitions: int


class RatingPreviewList(BaseModel):
    question_id: str
    previews: list[RatingPreview]


class ProjectReviewStats(BaseModel):
    project_id: str
    title: str
    total: int
    due: int


class ReviewStats(BaseModel):
    total_questions: int
    due_today: int
    reviewed_today: int
    per_project: list[ProjectReviewStats]
