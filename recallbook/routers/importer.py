import logging
from datetime import date

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException

from recallbook.auth import get_current_user_id
from recallbook.clock import get_today
from recallbook.db.sqlite import get_db
from recallbook.models.import_data import ImportRequest, ImportResult
from recallbook.services.importer import import_learning_data

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=ImportResult, status_code=201)
async def import_session(
    body: ImportRequest,
    user_id: str = Depends(get_current_user_id),
    today: date = Depends(get_today),
    db: aiosqlite.Connection = Depends(get_db),
):
    try:
        return await import_learning_data(db, user_id, body.data, today=today)
    except aiosqlite.Error as e:
        logger.error("Import failed for project %r: %s", body.data.project, e)
        raise HTTPException(status_code=500, detail="Failed to import session") from e
