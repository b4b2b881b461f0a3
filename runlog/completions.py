"""
Training-plan session completions.

A completion is keyed by (user, week, day, session type) and is either
present or absent; toggling flips between the two.
"""
import logging

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import Conflict, ValidationError
from .models import SessionCompletion
from .tokens import ensure_user

logger = logging.getLogger(__name__)

def _key(week_number: int, day_of_week: str | None, session_type: str) -> tuple[int, str, str]:
    if week_number < 1:
        raise ValidationError("week_number must be >= 1")
    if not session_type or not session_type.strip():
        raise ValidationError("session_type is required")
    return week_number, (day_of_week or "").strip(), session_type.strip()

def _find(db: Session, user_id: str, week: int, day: str, kind: str) -> SessionCompletion | None:
    return db.query(SessionCompletion).filter_by(
        user_id=user_id, week_number=week, day_of_week=day, session_type=kind,
    ).first()

def list_completions(db: Session, user_id: str) -> list[SessionCompletion]:
    return (
        db.query(SessionCompletion)
        .filter(SessionCompletion.user_id == user_id)
        .order_by(SessionCompletion.week_number, SessionCompletion.day_of_week)
        .all()
    )

def create_completion(
    db: Session, user_id: str, week_number: int, day_of_week: str | None, session_type: str,
) -> SessionCompletion:
    week, day, kind = _key(week_number, day_of_week, session_type)
    ensure_user(db, user_id)
    rec = SessionCompletion(user_id=user_id, week_number=week, day_of_week=day, session_type=kind)
    db.add(rec)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict(f"session already completed: week {week} {day or '-'} {kind}") from e
    db.refresh(rec)
    return rec

def toggle(
    db: Session, user_id: str, week_number: int, day_of_week: str | None, session_type: str,
) -> tuple[bool, SessionCompletion | None]:
    """Flip the completion state. Returns (is_completed, the completion row or None)."""
    week, day, kind = _key(week_number, day_of_week, session_type)

    # delete-if-exists in one statement; no read-then-act window
    deleted = db.execute(
        delete(SessionCompletion).where(
            SessionCompletion.user_id == user_id,
            SessionCompletion.week_number == week,
            SessionCompletion.day_of_week == day,
            SessionCompletion.session_type == kind,
        )
    ).rowcount
    if deleted:
        db.commit()
        logger.info("Session week %s %s %s unmarked for user %s", week, day or "-", kind, user_id)
        return False, None

    ensure_user(db, user_id)
    rec = SessionCompletion(user_id=user_id, week_number=week, day_of_week=day, session_type=kind)
    db.add(rec)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent toggle inserted the same key first
        db.rollback()
        return True, _find(db, user_id, week, day, kind)

    db.refresh(rec)
    logger.info("Session week %s %s %s completed for user %s", week, day or "-", kind, user_id)
    return True, rec
