"""
Review service: connects the history store to the SM-2 scheduler.

  record_review        - score a question and append the resulting state
  list_due_questions   - questions whose latest state is due on or before today
  preview_for_question - what each rating would schedule, nothing recorded
  get_review_stats     - totals and per-project breakdown for the dashboard
"""
from __future__ import annotations

import logging
from datetime import date, datetime

import aiosqlite

from recallbook.db.sqlite import (
    append_review,
    count_reviews_on,
    get_latest_review,
    get_latest_reviews,
    get_project,
    get_question,
    get_session,
    insert_questions,
    list_projects,
    list_questions,
)
from recallbook.models.question import ReviewQuestion, ReviewQuestionCreate
from recallbook.models.review import (
    DueQuestion,
    ProjectReviewStats,
    RatingPreview,
    ReviewHistory,
    ReviewStats,
)
from recallbook.services.scheduler import (
    NextReview,
    ReviewState,
    compute_next_review,
    initial_review_state,
    is_review_due,
    preview_ratings,
    validate_rating,
)

logger = logging.getLogger(__name__)


class QuestionNotFoundError(LookupError):
    """Raised when a question does not exist or belongs to another user."""


class ProjectNotFoundError(LookupError):
    """Raised when a project does not exist or belongs to another user."""


class SessionNotFoundError(LookupError):
    """Raised when a session is missing or outside the caller's project."""


def _created_on(question: ReviewQuestion) -> date:
    return date.fromisoformat(question.created_at[:10])


def current_state(
    question: ReviewQuestion, latest: ReviewHistory | None
) -> NextReview:
    """Latest recorded state, or the synthetic initial state from the creation date."""
    if latest is None:
        return initial_review_state(_created_on(question))
    return NextReview(
        next_review_date=latest.next_review_date,
        interval_days=latest.interval_days,
        ease_factor=latest.ease_factor,
        repetitions=latest.repetitions,
    )


async def _require_question(
    db: aiosqlite.Connection, user_id: str, question_id: str
) -> ReviewQuestion:
    question = await get_question(db, user_id, question_id)
    if question is None:
        raise QuestionNotFoundError(question_id)
    return question


async def record_review(
    db: aiosqlite.Connection,
    user_id: str,
    question_id: str,
    rating: int,
    today: date,
    reviewed_at: datetime | None = None,
) -> ReviewHistory:
    """
    Score a question and append the new state to its history.

    The schedule is computed from the calendar date of ``reviewed_at`` when the
    client supplies one, otherwise from ``today``.

    Raises InvalidArgumentError for an out-of-range rating and
    QuestionNotFoundError when the question is not the user's.
    """
    validate_rating(rating)
    question = await _require_question(db, user_id, question_id)
    latest = await get_latest_review(db, user_id, question_id)
    state = current_state(question, latest).state

    base_date = reviewed_at.date() if reviewed_at is not None else today
    next_review = compute_next_review(rating, state, base_date)

    row = await append_review(
        db,
        user_id,
        question_id,
        next_review,
        reviewed_at=reviewed_at,
        self_rating=rating,
    )
    logger.info(
        "Review recorded for question %s: rating=%d interval=%d next=%s",
        question_id,
        rating,
        row.interval_days,
        row.next_review_date,
    )
    return row


async def list_due_questions(
    db: aiosqlite.Connection,
    user_id: str,
    today: date,
    project_id: str | None = None,
    limit: int | None = None,
) -> list[DueQuestion]:
    """
    Return every question of the user whose latest state is due on or before
    ``today`` (inclusive), soonest-due first, then oldest question first.
    """
    questions, _ = await list_questions(db, user_id, project_id=project_id, limit=None)
    latest_by_question = await get_latest_reviews(db, user_id)

    due: list[tuple[date, DueQuestion]] = []
    for question in questions:
        latest = latest_by_question.get(question.id)
        state = current_state(question, latest)
        if is_review_due(state.next_review_date, today):
            due.append(
                (
                    state.next_review_date,
                    DueQuestion(**question.model_dump(), last_review=latest),
                )
            )

    # list_questions already orders by created_at, and sort is stable
    due.sort(key=lambda pair: pair[0])
    items = [item for _, item in due]
    return items if limit is None else items[:limit]


async def preview_for_question(
    db: aiosqlite.Connection,
    user_id: str,
    question_id: str,
    today: date,
) -> list[RatingPreview]:
    question = await _require_question(db, user_id, question_id)
    latest = await get_latest_review(db, user_id, question_id)
    state: ReviewState = current_state(question, latest).state
    return [
        RatingPreview(
            rating=rating,
            next_review_date=outcome.next_review_date,
            interval_days=outcome.interval_days,
            ease_factor=outcome.ease_factor,
            repetitions=outcome.repetitions,
        )
        for rating, outcome in preview_ratings(state, today).items()
    ]


async def create_question(
    db: aiosqlite.Connection, user_id: str, body: ReviewQuestionCreate
) -> ReviewQuestion:
    """Create a single question. It carries no history row until its first review."""
    project = await get_project(db, user_id, body.project_id)
    if project is None:
        raise ProjectNotFoundError(body.project_id)
    if body.session_id is not None:
        session = await get_session(db, user_id, body.session_id)
        if session is None or session.project_id != body.project_id:
            raise SessionNotFoundError(body.session_id)
    created = await insert_questions(db, user_id, [body])
    return created[0]


async def get_review_stats(
    db: aiosqlite.Connection, user_id: str, today: date
) -> ReviewStats:
    """Total questions, due today, reviewed today, and per-project breakdown."""
    questions, total = await list_questions(db, user_id, limit=None)
    latest_by_question = await get_latest_reviews(db, user_id)
    projects, _ = await list_projects(db, user_id)

    per_project: dict[str, ProjectReviewStats] = {
        p.id: ProjectReviewStats(project_id=p.id, title=p.title, total=0, due=0)
        for p in projects
    }
    due_today = 0
    for question in questions:
        state = current_state(question, latest_by_question.get(question.id))
        is_due = is_review_due(state.next_review_date, today)
        entry = per_project.get(question.project_id)
        if entry is not None:
            entry.total += 1
            entry.due += int(is_due)
        due_today += int(is_due)

    return ReviewStats(
        total_questions=total,
        due_today=due_today,
        reviewed_today=await count_reviews_on(db, user_id, today),
        per_project=sorted(per_project.values(), key=lambda s: s.title),
    )
