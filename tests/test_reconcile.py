import pytest
from sqlalchemy.exc import OperationalError

from runlog import reconcile
from runlog.errors import Conflict, NotFound
from runlog.models import Activity
from runlog.schemas import ActivityCreate, RemoteActivity


@pytest.fixture
def remote(make_strava_activity):
    def _remote(activity_id, **kw):
        return RemoteActivity.from_strava(make_strava_activity(activity_id, **kw))
    return _remote


def test_pace_min_per_km():
    assert reconcile.pace_min_per_km(10.0, 3000) == pytest.approx(5.0)
    assert reconcile.pace_min_per_km(0.0, 3000) == 0.0


def test_import_converts_units(db_session, remote):
    rec = reconcile.import_activity(db_session, "runner-1", remote(1, distance=10000, moving_time=3000))

    assert rec.id
    assert rec.distance_km == pytest.approx(10.0)
    assert rec.pace_min_per_km == pytest.approx(5.0)
    assert rec.duration_s == 3000
    assert rec.strava_id == "1"
    assert rec.title == "Morning Run 1"
    assert rec.elevation_m == pytest.approx(42.0)
    assert rec.route == {"summary_polyline": "abc~def"}
    assert rec.date == rec.start_time


@pytest.mark.parametrize("distance,moving_time", [(5321.7, 1700), (21097.5, 6543), (800.0, 190)])
def test_import_pace_matches_moving_time(db_session, remote, distance, moving_time):
    rec = reconcile.import_activity(db_session, "runner-1", remote(9, distance=distance, moving_time=moving_time))

    km = distance / 1000
    assert rec.distance_km == pytest.approx(km)
    assert rec.pace_min_per_km == pytest.approx((moving_time / 60) / km)


def test_zero_distance_imports_with_zero_pace(db_session, remote):
    rec = reconcile.import_activity(db_session, "runner-1", remote(2, distance=0, moving_time=1200))
    assert rec.distance_km == 0
    assert rec.pace_min_per_km == 0


def test_heart_rate_rounded_and_missing_route(db_session, make_strava_activity):
    data = make_strava_activity(3, average_heartrate=151.6, calories=640.0)
    data["map"] = {"summary_polyline": ""}
    rec = reconcile.import_activity(db_session, "runner-1", RemoteActivity.from_strava(data))

    assert rec.heart_rate_bpm == 152
    assert rec.calories == 640.0
    assert rec.route is None


def test_import_twice_conflicts(db_session, remote):
    reconcile.import_activity(db_session, "runner-1", remote(4))
    with pytest.raises(Conflict):
        reconcile.import_activity(db_session, "runner-1", remote(4))

    assert db_session.query(Activity).filter_by(strava_id="4").count() == 1


def test_annotate_import_status(db_session, remote):
    reconcile.import_activity(db_session, "runner-1", remote(11))
    # same remote id owned by someone else must not count
    reconcile.import_activity(db_session, "runner-2", remote(12))

    annotated = reconcile.annotate_import_status(
        db_session, "runner-1", [remote(10), remote(11), remote(12)],
    )

    assert [(a.remote_id, imported) for a, imported in annotated] == [
        (10, False), (11, True), (12, False),
    ]


def test_annotate_empty(db_session):
    assert reconcile.annotate_import_status(db_session, "runner-1", []) == []


def test_batch_tallies_each_item(db_session, remote):
    reconcile.import_activity(db_session, "runner-1", remote(21))
    before = db_session.query(Activity).count()

    result = reconcile.import_batch(db_session, "runner-1", [remote(20), remote(21), remote(22)])

    assert result.imported == 2
    assert result.conflicts == 1
    assert result.failed == 0
    assert sorted(a.strava_id for a in result.activities) == ["20", "22"]
    assert db_session.query(Activity).count() == before + 2


def test_delete_activity(db_session, remote):
    rec = reconcile.import_activity(db_session, "runner-1", remote(30))
    reconcile.delete_activity(db_session, rec.id)
    assert db_session.get(Activity, rec.id) is None

    with pytest.raises(NotFound):
        reconcile.delete_activity(db_session, rec.id)


def test_create_activity_computes_pace(db_session):
    rec = reconcile.create_activity(
        db_session, "runner-1",
        ActivityCreate(title="Track session", distance_km=8.0, duration_s=2400),
    )
    assert rec.pace_min_per_km == pytest.approx(5.0)
    assert rec.strava_id is None
    assert rec.date is not None


def test_list_activities_newest_first(db_session, remote):
    reconcile.import_activity(db_session, "runner-1", remote(40, start_date="2024-01-01T07:00:00Z"))
    reconcile.import_activity(db_session, "runner-1", remote(41, start_date="2024-02-01T07:00:00Z"))
    reconcile.import_activity(db_session, "runner-2", remote(42))

    assert [a.strava_id for a in reconcile.list_activities(db_session, "runner-1")] == ["41", "40"]


def test_batch_store_failure_does_not_stop_batch(db_session, remote, monkeypatch):
    real_commit = db_session.commit
    calls = {"n": 0}

    def flaky_commit():
        calls["n"] += 1
        if calls["n"] == 2:
            raise OperationalError("INSERT INTO activities", {}, Exception("disk I/O error"))
        real_commit()

    monkeypatch.setattr(db_session, "commit", flaky_commit)

    result = reconcile.import_batch(db_session, "runner-1", [remote(50), remote(51), remote(52)])

    assert (result.imported, result.conflicts, result.failed) == (2, 0, 1)
    assert sorted(a.strava_id for a in db_session.query(Activity)) == ["50", "52"]


def test_import_store_failure_rolls_back(db_session, remote, monkeypatch):
    def broken_commit():
        raise OperationalError("INSERT INTO activities", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", broken_commit)

    with pytest.raises(OperationalError):
        reconcile.import_activity(db_session, "runner-1", remote(60))

    assert db_session.query(Activity).count() == 0
