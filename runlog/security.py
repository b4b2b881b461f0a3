# runlog/security.py
from fastapi import Header, Query
from .config import settings

def current_user_id(
    user_id: str | None = Query(None, alias="userId"),
    x_user_id: str | None = Header(None),
) -> str:
    """
    Resolve the caller's identity. There is no login; the caller names itself
    and anything unnamed falls back to the configured default user.
    """
    return user_id or x_user_id or settings.DEFAULT_USER_ID
