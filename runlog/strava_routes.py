import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from . import reconcile, strava, tokens
from .classify import is_running
from .config import settings
from .db import get_session
from .errors import RunlogError
from .schemas import (
    ActivityResponse, AnnotatedRemoteActivity, BatchImportRequest,
    BatchImportResult, RemoteActivity,
)
from .security import current_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/strava", tags=["strava"])

@router.get("/auth")
async def auth_start(user_id: str = Depends(current_user_id)):
    # state round-trips the caller's identity through Strava
    return RedirectResponse(strava.authorization_url(state=user_id))

@router.get("/callback")
async def auth_cb(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    db: Session = Depends(get_session),
):
    failed = RedirectResponse(f"{settings.FRONTEND_URL}/strava?error=strava_auth_failed")
    if error or not code:
        logger.warning("Strava authorization declined or incomplete: %s", error)
        return failed

    try:
        token = await strava.exchange_code(code)
    except RunlogError as e:
        logger.error("Strava token exchange failed: %s", e.detail)
        return failed

    user = tokens.store_token_exchange(db, token, user_id=state)
    return RedirectResponse(f"{settings.FRONTEND_URL}/import?userId={user.id}")

@router.get("/activities", response_model=list[AnnotatedRemoteActivity])
async def remote_activities(
    page: int = Query(1, ge=1),
    per_page: int = Query(30, ge=1, le=200, alias="perPage"),
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_session),
):
    access_token = await tokens.get_access_token(db, user_id)
    acts = await strava.list_activities(access_token, page, per_page)
    runs = [a for a in acts if is_running(a.sport_type)]
    return [
        AnnotatedRemoteActivity(**a.model_dump(), is_imported=imported)
        for a, imported in reconcile.annotate_import_status(db, user_id, runs)
    ]

@router.post("/import", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
def import_one(
    payload: dict[str, Any] = Body(...),
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_session),
):
    # Strava's raw activity or the normalized shape /strava/activities returns
    return reconcile.import_activity(db, user_id, RemoteActivity.from_payload(payload))

@router.post("/import/batch", response_model=BatchImportResult)
async def import_many(
    payload: BatchImportRequest,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_session),
):
    access_token = await tokens.get_access_token(db, user_id)

    fetched: list[RemoteActivity] = []
    fetch_failures = 0
    for activity_id in payload.activity_ids:
        try:
            fetched.append(await strava.get_activity(access_token, activity_id))
        except RunlogError as e:
            logger.warning("Could not fetch Strava activity %s: %s", activity_id, e.detail)
            fetch_failures += 1

    result = reconcile.import_batch(db, user_id, fetched)
    result.failed += fetch_failures
    return result

@router.delete("/import")
def delete_import(
    activity_id: str = Query(..., alias="activityId"),
    db: Session = Depends(get_session),
):
    reconcile.delete_activity(db, activity_id)
    return {"success": True}
