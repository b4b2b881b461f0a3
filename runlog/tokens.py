"""
Strava credential storage and refresh.

Refreshes are not serialized: two requests holding the same expired
credential may both hit the token endpoint, and Strava's refresh-token
rotation can then invalidate one of the results.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from . import strava
from .errors import AuthError, RemoteUnavailable
from .models import User
from .utils_time import to_epoch, utcnow

logger = logging.getLogger(__name__)

def ensure_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if not user:
        user = User(id=user_id)
        db.add(user)
        db.flush()
    return user

def _display_name(athlete: dict) -> str:
    full = f"{(athlete.get('firstname') or '').strip()} {(athlete.get('lastname') or '').strip()}".strip()
    return full or athlete.get("username") or f"Strava #{athlete['id']}"

def store_token_exchange(db: Session, token: dict, user_id: str | None = None) -> User:
    """Upsert the credential returned by the authorization-code exchange."""
    athlete = token["athlete"]
    u = db.query(User).filter_by(strava_athlete_id=athlete["id"]).first()
    if not u and user_id:
        u = db.get(User, user_id)
    if not u:
        u = User(id=user_id) if user_id else User()
        u.email = f"{athlete['id']}@strava.local"

    u.strava_athlete_id = athlete["id"]
    u.strava_access_token = token["access_token"]
    u.strava_refresh_token = token["refresh_token"]
    u.strava_token_expires_at = token["expires_at"]
    u.name = _display_name(athlete)

    db.add(u)
    db.commit()
    logger.info("Stored Strava credential for user %s (athlete %s)", u.id, athlete["id"])
    return u

async def refresh_if_expired(db: Session, user: User | None, now: datetime | None = None) -> str:
    if not user or not user.strava_refresh_token:
        raise AuthError("user not found or not connected to Strava")

    expires_at = user.strava_token_expires_at
    now_ts = to_epoch(now or utcnow())
    if expires_at is None or now_ts < expires_at:
        if not user.strava_access_token:
            raise AuthError("no Strava access token stored; reconnect Strava")
        return user.strava_access_token

    new = await strava.refresh_token(user.strava_refresh_token)
    if not new.get("access_token"):
        raise RemoteUnavailable("Strava token refresh returned no access token")
    user.strava_access_token = new["access_token"]
    user.strava_refresh_token = new.get("refresh_token", user.strava_refresh_token)
    user.strava_token_expires_at = new.get("expires_at", user.strava_token_expires_at)
    db.add(user)
    db.commit()
    logger.info("Refreshed Strava token for user %s", user.id)
    return user.strava_access_token

async def get_access_token(db: Session, user_id: str, now: datetime | None = None) -> str:
    return await refresh_if_expired(db, db.get(User, user_id), now=now)
