"""
Spaced-repetition review router.

Endpoints:
  POST /reviews                        - record a self-rating (1-5), run SM-2
  GET  /reviews/today                  - questions due today or earlier
  GET  /reviews/stats                  - totals, due today, reviewed today, per project
  GET  /reviews/{question_id}/history  - full review history, oldest first
  GET  /reviews/{question_id}/preview  - what each rating would schedule
"""
from __future__ import annotations

from datetime import date

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from recallbook.auth import get_current_user_id
from recallbook.clock import get_today
from recallbook.config import settings
from recallbook.db.sqlite import get_db, get_question, list_review_history
from recallbook.models.review import (
    DueQuestionList,
    RatingPreviewList,
    ReviewHistoryList,
    ReviewRequest,
    ReviewResult,
    ReviewStats,
)
from recallbook.services.review_service import (
    QuestionNotFoundError,
    get_review_stats,
    list_due_questions,
    preview_for_question,
    record_review,
)
from recallbook.services.scheduler import InvalidArgumentError

router = APIRouter()


@router.post("", response_model=ReviewResult)
async def submit_review(
    body: ReviewRequest,
    user_id: str = Depends(get_current_user_id),
    today: date = Depends(get_today),
    db: aiosqlite.Connection = Depends(get_db),
) -> ReviewResult:
    """Record a self-rating for a question and return its next schedule."""
    try:
        row = await record_review(
            db,
            user_id,
            body.question_id,
            body.self_rating,
            today=today,
            reviewed_at=body.reviewed_at,
        )
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except QuestionNotFoundError as e:
        raise HTTPException(status_code=404, detail="Question not found") from e

    return ReviewResult(
        next_review_date=row.next_review_date,
        interval_days=row.interval_days,
        ease_factor=row.ease_factor,
        repetitions=row.repetitions,
    )


@router.get("/today", response_model=DueQuestionList)
async def due_today(
    project_id: str | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=500),
    user_id: str = Depends(get_current_user_id),
    today: date = Depends(get_today),
    db: aiosqlite.Connection = Depends(get_db),
) -> DueQuestionList:
    items = await list_due_questions(
        db,
        user_id,
        today,
        project_id=project_id,
        limit=limit or settings.due_limit_default,
    )
    return DueQuestionList(count=len(items), questions=items)


@router.get("/stats", response_model=ReviewStats)
async def review_stats(
    user_id: str = Depends(get_current_user_id),
    today: date = Depends(get_today),
    db: aiosqlite.Connection = Depends(get_db),
) -> ReviewStats:
    return await get_review_stats(db, user_id, today)


@router.get("/{question_id}/history", response_model=ReviewHistoryList)
async def question_history(
    question_id: str,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> ReviewHistoryList:
    if await get_question(db, user_id, question_id) is None:
        raise HTTPException(status_code=404, detail="Question not found")
    items = await list_review_history(db, user_id, question_id)
    return ReviewHistoryList(items=items, total=len(items))


@router.get("/{question_id}/preview", response_model=RatingPreviewList)
async def question_preview(
    question_id: str,
    user_id: str = Depends(get_current_user_id),
    today: date = Depends(get_today),
    db: aiosqlite.Connection = Depends(get_db),
) -> RatingPreviewList:
    """Show the schedule each rating would produce. Nothing is recorded."""
    try:
        previews = await preview_for_question(db, user_id, question_id, today)
    except QuestionNotFoundError as e:
        raise HTTPException(status_code=404, detail="Question not found") from e
    return RatingPreviewList(question_id=question_id, previews=previews)
