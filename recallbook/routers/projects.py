import aiosqlite
from fastapi import APIRouter, Depends, HTTPException

from recallbook.auth import get_current_user_id
from recallbook.db.sqlite import (
    delete_project,
    get_db,
    get_project,
    get_session,
    list_projects,
    list_sessions_for_project,
)
from recallbook.models.project import (
    LearningSession,
    LearningSessionList,
    Project,
    ProjectList,
)

router = APIRouter()
sessions_router = APIRouter()


@router.get("", response_model=ProjectList)
async def list_user_projects(
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    items, total = await list_projects(db, user_id)
    return ProjectList(items=items, total=total)


@router.get("/{project_id}", response_model=Project)
async def get_user_project(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    project = await get_project(db, user_id, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.delete("/{project_id}", status_code=204)
async def remove_project(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> None:
    deleted = await delete_project(db, user_id, project_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Project not found")


@router.get("/{project_id}/sessions", response_model=LearningSessionList)
async def list_project_sessions(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    if not await get_project(db, user_id, project_id):
        raise HTTPException(status_code=404, detail="Project not found")
    items, total = await list_sessions_for_project(db, user_id, project_id)
    return LearningSessionList(items=items, total=total)


@sessions_router.get("/{session_id}", response_model=LearningSession)
async def get_learning_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    session = await get_session(db, user_id, session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session
