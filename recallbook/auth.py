"""
Caller identity.

Authentication happens upstream (identity provider + proxy). The proxy
forwards the authenticated user's opaque id in a trusted header; every
owner-scoped query in this service takes that id.
"""
from fastapi import HTTPException, Request

from recallbook.config import settings


async def get_current_user_id(request: Request) -> str:
    user_id = (request.headers.get(settings.user_header) or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_id
