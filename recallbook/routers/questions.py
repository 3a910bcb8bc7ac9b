import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from recallbook.auth import get_current_user_id
from recallbook.db.sqlite import get_db, get_question, list_questions
from recallbook.models.question import (
    ReviewQuestion,
    ReviewQuestionCreate,
    ReviewQuestionList,
)
from recallbook.services.review_service import (
    ProjectNotFoundError,
    SessionNotFoundError,
    create_question,
)

router = APIRouter()


@router.post("", response_model=ReviewQuestion, status_code=201)
async def create_review_question(
    body: ReviewQuestionCreate,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    try:
        return await create_question(db, user_id, body)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail="Project not found") from e
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail="Session not found") from e


@router.get("", response_model=ReviewQuestionList)
async def list_review_questions(
    project_id: str | None = Query(default=None),
    session_id: str | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    items, total = await list_questions(
        db,
        user_id,
        project_id=project_id,
        session_id=session_id,
        offset=offset,
        limit=limit,
    )
    return ReviewQuestionList(items=items, total=total, offset=offset, limit=limit)


@router.get("/{question_id}", response_model=ReviewQuestion)
async def get_review_question(
    question_id: str,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    question = await get_question(db, user_id, question_id)
    if not question:
        raise HTTPException(status_code=404, detail="Question not found")
    return question
