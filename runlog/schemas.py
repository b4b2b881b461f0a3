from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .utils_time import parse_strava_time


class RemoteActivity(BaseModel):
    """An activity as Strava reports it, normalized to our field names."""

    remote_id: int
    name: str
    sport_type: Optional[str] = None
    distance_m: float = 0.0
    moving_time_s: int = 0
    elapsed_time_s: int = 0
    elevation_gain_m: float = 0.0
    start_date: datetime
    average_heartrate: Optional[float] = None
    calories: Optional[float] = None
    summary_polyline: Optional[str] = None

    @classmethod
    def from_strava(cls, data: dict[str, Any]) -> "RemoteActivity":
        """
        Build from Strava's own field names. ``stravaId`` is accepted in place
        of ``id`` for clients that post activities back for import.
        Raises ValidationError on a payload that cannot be read.
        """
        try:
            raw_id = data["id"] if data.get("id") is not None else data["stravaId"]
            remote_id = int(raw_id)
            start_raw = data.get("start_date") or data["start_date_local"]
            summary = (data.get("map") or {}).get("summary_polyline")
            return cls(
                remote_id=remote_id,
                name=data.get("name") or f"Strava activity {remote_id}",
                sport_type=data.get("sport_type") or data.get("type"),
                distance_m=float(data.get("distance") or 0),
                moving_time_s=int(data.get("moving_time") or 0),
                elapsed_time_s=int(data.get("elapsed_time") or 0),
                elevation_gain_m=float(data.get("total_elevation_gain") or 0),
                start_date=parse_strava_time(start_raw),
                average_heartrate=data.get("average_heartrate"),
                calories=data.get("calories"),
                summary_polyline=summary or None,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            # pydantic's ValidationError is a ValueError
            raise ValidationError(f"malformed Strava activity payload: {e!r}") from e

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "RemoteActivity":
        """Accept either our normalized shape or Strava's raw one."""
        if "remote_id" not in data:
            return cls.from_strava(data)
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(f"malformed activity payload: {e}") from e


class AnnotatedRemoteActivity(RemoteActivity):
    is_imported: bool


class ActivityCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    distance_km: float = Field(ge=0)
    duration_s: int = Field(ge=0)
    pace_min_per_km: Optional[float] = None
    date: Optional[datetime] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    elevation_m: Optional[float] = None
    heart_rate_bpm: Optional[int] = None
    calories: Optional[float] = None
    route: Optional[dict[str, Any]] = None


class ActivityResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    distance_km: float
    duration_s: int
    pace_min_per_km: float
    date: datetime
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    elevation_m: Optional[float] = None
    heart_rate_bpm: Optional[int] = None
    calories: Optional[float] = None
    strava_id: Optional[str] = None
    route: Optional[dict[str, Any]] = None

    model_config = ConfigDict(from_attributes=True)


class BatchImportRequest(BaseModel):
    activity_ids: list[int] = Field(min_length=1)


class BatchImportResult(BaseModel):
    imported: int = 0
    conflicts: int = 0
    failed: int = 0
    activities: list[ActivityResponse] = []


class SessionCompletionRequest(BaseModel):
    week_number: int
    day_of_week: Optional[str] = None
    session_type: str


class SessionCompletionResponse(BaseModel):
    id: str
    user_id: str
    week_number: int
    day_of_week: Optional[str] = None
    session_type: str
    completed_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("day_of_week", mode="before")
    @classmethod
    def _blank_day_is_none(cls, v):
        return v or None


class ToggleResponse(BaseModel):
    is_completed: bool
    completion: Optional[SessionCompletionResponse] = None
