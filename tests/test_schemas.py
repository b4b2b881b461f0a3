import pytest

from runlog.errors import ValidationError
from runlog.schemas import RemoteActivity


@pytest.mark.parametrize("override", [
    {"start_date": "not-a-date"},
    {"distance": "ten km"},
    {"id": None},
    {"map": "abc"},
])
def test_unreadable_strava_payload_raises_validation_error(make_strava_activity, override):
    data = make_strava_activity(1)
    data.update(override)

    with pytest.raises(ValidationError):
        RemoteActivity.from_strava(data)


def test_strava_id_accepted_in_place_of_id(make_strava_activity):
    data = make_strava_activity(1)
    data["stravaId"] = data.pop("id")

    assert RemoteActivity.from_strava(data).remote_id == 1


def test_from_payload_accepts_both_shapes(make_strava_activity):
    raw = RemoteActivity.from_payload(make_strava_activity(7))
    normalized = RemoteActivity.from_payload(raw.model_dump(mode="json"))

    assert normalized == raw


def test_from_payload_rejects_bad_normalized_body():
    with pytest.raises(ValidationError):
        RemoteActivity.from_payload({"remote_id": "x", "name": "n", "start_date": "2024-01-01T00:00:00Z"})
