"""
Bulk import of a study session exported by the tutor.

  1. Find or create the project by (user, name)
  2. Create the learning session, keeping the raw payload
  3. Insert the review questions
  4. Write one initial history row per question, stamped with the creation time

Runs in a single transaction: on any failure nothing is kept.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone

import aiosqlite

from recallbook.db.sqlite import (
    append_review,
    create_project,
    create_session,
    get_project_by_name,
    insert_questions,
)
from recallbook.models.import_data import ImportData, ImportResult
from recallbook.models.question import ReviewQuestionCreate
from recallbook.services.scheduler import initial_review_state

logger = logging.getLogger(__name__)


async def import_learning_data(
    db: aiosqlite.Connection,
    user_id: str,
    data: ImportData,
    today: date,
    now: datetime | None = None,
) -> ImportResult:
    """Import one session. New questions become due the day after ``today``."""
    now = now or datetime.now(timezone.utc)
    try:
        project = await get_project_by_name(db, user_id, data.project)
        if project is None:
            project = await create_project(
                db,
                user_id,
                data.project,
                title=data.title,
                author=data.author,
                current_chapter=data.chapter,
                commit=False,
            )
            logger.info("Created project %s (%s) for import", project.id, data.project)

        session = await create_session(
            db,
            user_id,
            project.id,
            data.model_dump(exclude={"review_questions"}),
            raw_data=data.raw(),
            commit=False,
        )

        questions = await insert_questions(
            db,
            user_id,
            [
                ReviewQuestionCreate(
                    project_id=project.id,
                    session_id=session.id,
                    **q.model_dump(),
                )
                for q in data.review_questions
            ],
            commit=False,
        )

        initial = initial_review_state(today)
        for question in questions:
            await append_review(
                db, user_id, question.id, initial, reviewed_at=now, commit=False
            )

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Imported session %s into project %s with %d questions",
        session.id,
        project.id,
        len(questions),
    )
    return ImportResult(
        session_id=session.id,
        project_id=project.id,
        questions_count=len(questions),
        question_ids=[q.id for q in questions],
    )

