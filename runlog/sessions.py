from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from . import completions
from .db import get_session
from .schemas import SessionCompletionRequest, SessionCompletionResponse, ToggleResponse
from .security import current_user_id

router = APIRouter(prefix="/session-completions", tags=["sessions"])

@router.get("", response_model=list[SessionCompletionResponse])
def list_completions(
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_session),
):
    return completions.list_completions(db, user_id)

@router.post("", response_model=SessionCompletionResponse, status_code=status.HTTP_201_CREATED)
def create_completion(
    payload: SessionCompletionRequest,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_session),
):
    return completions.create_completion(
        db, user_id, payload.week_number, payload.day_of_week, payload.session_type,
    )

@router.post("/toggle", response_model=ToggleResponse)
def toggle_completion(
    payload: SessionCompletionRequest,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_session),
):
    is_completed, rec = completions.toggle(
        db, user_id, payload.week_number, payload.day_of_week, payload.session_type,
    )
    return ToggleResponse(
        is_completed=is_completed,
        completion=SessionCompletionResponse.model_validate(rec) if rec else None,
    )
