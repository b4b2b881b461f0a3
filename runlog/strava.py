import logging
from urllib.parse import urlencode

import httpx

from .config import settings
from .errors import RemoteUnavailable, ValidationError
from .schemas import RemoteActivity

logger = logging.getLogger(__name__)

BASE = "https://www.strava.com/api/v3"
OAUTH_BASE = "https://www.strava.com/oauth"

def _client(timeout: float | None = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout or settings.STRAVA_TIMEOUT_S)

async def _send(what: str, method: str, url: str, timeout: float | None = None, **kwargs):
    try:
        async with _client(timeout) as c:
            r = await c.request(method, url, **kwargs)
            r.raise_for_status()
            return r.json()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        logger.warning("Strava %s failed with status %s", what, status)
        raise RemoteUnavailable(f"Strava {what} failed with status {status}", upstream_status=status) from e
    except httpx.TimeoutException as e:
        logger.warning("Strava %s timed out", what)
        raise RemoteUnavailable(f"Strava {what} timed out") from e
    except httpx.RequestError as e:
        logger.warning("Strava %s could not be reached: %s", what, e)
        raise RemoteUnavailable(f"Strava {what} could not be reached") from e

def _parse(what: str, data) -> RemoteActivity:
    # bad data from Strava is an upstream fault, not the caller's
    try:
        return RemoteActivity.from_strava(data)
    except ValidationError as e:
        logger.warning("Strava %s returned a malformed activity: %s", what, e.detail)
        raise RemoteUnavailable(f"Strava {what} returned a malformed activity") from e

def authorization_url(state: str | None = None) -> str:
    params = {
        "client_id": settings.STRAVA_CLIENT_ID,
        "redirect_uri": settings.STRAVA_REDIRECT_URI,
        "response_type": "code",
        "approval_prompt": "auto",
        "scope": settings.STRAVA_SCOPES,
    }
    if state:
        params["state"] = state
    return f"{OAUTH_BASE}/authorize?{urlencode(params)}"

async def exchange_code(code: str, timeout: float | None = None) -> dict:
    return await _send("token exchange", "POST", f"{OAUTH_BASE}/token", timeout, data={
        "client_id": settings.STRAVA_CLIENT_ID,
        "client_secret": settings.STRAVA_CLIENT_SECRET,
        "code": code,
        "grant_type": "authorization_code",
    })

async def refresh_token(refresh_token: str, timeout: float | None = None) -> dict:
    return await _send("token refresh", "POST", f"{OAUTH_BASE}/token", timeout, data={
        "client_id": settings.STRAVA_CLIENT_ID,
        "client_secret": settings.STRAVA_CLIENT_SECRET,
        "grant_type": "refresh_token",
        "refresh_token": refresh_token,
    })

async def list_activities(
    access_token: str, page: int = 1, per_page: int = 30, timeout: float | None = None,
) -> list[RemoteActivity]:
    if page < 1 or per_page < 1:
        raise ValidationError("page and per_page must be positive integers")
    data = await _send(
        "activity list", "GET", f"{BASE}/athlete/activities", timeout,
        headers={"Authorization": f"Bearer {access_token}"},
        params={"page": page, "per_page": per_page},
    )
    return [_parse("activity list", a) for a in data]

async def get_activity(access_token: str, activity_id: int, timeout: float | None = None) -> RemoteActivity:
    data = await _send(
        "activity fetch", "GET", f"{BASE}/activities/{activity_id}", timeout,
        headers={"Authorization": f"Bearer {access_token}"},
    )
    return _parse("activity fetch", data)
