import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import Conflict, NotFound, RunlogError
from .models import Activity
from .schemas import ActivityCreate, ActivityResponse, BatchImportResult, RemoteActivity
from .tokens import ensure_user
from .utils_time import utcnow

logger = logging.getLogger(__name__)

KM = 1000.0

def pace_min_per_km(distance_km: float, duration_s: int) -> float:
    if distance_km <= 0:
        return 0.0
    return (duration_s / 60) / distance_km

def annotate_import_status(
    db: Session, user_id: str, remote_activities: list[RemoteActivity],
) -> list[tuple[RemoteActivity, bool]]:
    candidates = {str(a.remote_id) for a in remote_activities}
    if not candidates:
        return []
    imported = set(
        db.scalars(
            select(Activity.strava_id).where(
                Activity.user_id == user_id,
                Activity.strava_id.in_(candidates),
            )
        ).all()
    )
    return [(a, str(a.remote_id) in imported) for a in remote_activities]

def import_activity(db: Session, user_id: str, remote: RemoteActivity) -> Activity:
    strava_id = str(remote.remote_id)
    existing = db.query(Activity).filter_by(user_id=user_id, strava_id=strava_id).first()
    if existing:
        raise Conflict(f"activity {strava_id} already imported")

    ensure_user(db, user_id)

    distance_km = remote.distance_m / KM
    rec = Activity(
        user_id=user_id,
        strava_id=strava_id,
        title=remote.name,
        distance_km=distance_km,
        duration_s=remote.moving_time_s,
        pace_min_per_km=pace_min_per_km(distance_km, remote.moving_time_s),
        date=remote.start_date,
        start_time=remote.start_date,
        elevation_m=remote.elevation_gain_m,
        heart_rate_bpm=round(remote.average_heartrate) if remote.average_heartrate else None,
        calories=remote.calories,
        route={"summary_polyline": remote.summary_polyline} if remote.summary_polyline else None,
    )
    db.add(rec)
    try:
        db.commit()
    except IntegrityError as e:
        # lost a race against a concurrent import of the same activity
        db.rollback()
        raise Conflict(f"activity {strava_id} already imported") from e
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(rec)
    logger.info("Imported Strava activity %s as %s for user %s", strava_id, rec.id, user_id)
    return rec

def import_batch(
    db: Session, user_id: str, remote_activities: Iterable[RemoteActivity],
) -> BatchImportResult:
    """
    Import each activity in turn. One item's failure never stops the batch,
    so a partial failure leaves every earlier success in place.
    """
    result = BatchImportResult()
    for remote in remote_activities:
        try:
            rec = import_activity(db, user_id, remote)
        except Conflict:
            result.conflicts += 1
            continue
        except RunlogError as e:
            logger.warning("Import of Strava activity %s failed: %s", remote.remote_id, e.detail)
            result.failed += 1
            continue
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Import of Strava activity %s failed in the store", remote.remote_id)
            result.failed += 1
            continue
        result.imported += 1
        result.activities.append(ActivityResponse.model_validate(rec))

    logger.info(
        "Batch import for user %s: %d imported, %d conflicts, %d failed",
        user_id, result.imported, result.conflicts, result.failed,
    )
    return result

def delete_activity(db: Session, activity_id: str) -> None:
    rec = db.get(Activity, activity_id)
    if not rec:
        raise NotFound("activity", activity_id)
    db.delete(rec)
    db.commit()
    logger.info("Deleted activity %s", activity_id)

def create_activity(db: Session, user_id: str, payload: ActivityCreate) -> Activity:
    ensure_user(db, user_id)
    data = payload.model_dump()
    if data["pace_min_per_km"] is None:
        data["pace_min_per_km"] = pace_min_per_km(payload.distance_km, payload.duration_s)
    if data["date"] is None:
        data["date"] = data["start_time"] or utcnow()
    rec = Activity(user_id=user_id, **data)
    db.add(rec)
    db.commit()
    db.refresh(rec)
    return rec

def list_activities(db: Session, user_id: str) -> list[Activity]:
    return (
        db.query(Activity)
        .filter(Activity.user_id == user_id)
        .order_by(Activity.date.desc())
        .all()
    )
