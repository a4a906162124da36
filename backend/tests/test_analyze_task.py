from types import SimpleNamespace

import pytest

from worker.damage.describer import DescriberError, DescriberResult
from worker.tasks import analyze as analyze_task

OLD_REPORT = {"component": "Alt", "legacy_field": 1}

GOOD_ANSWER = (
    '{"bauteil": "Stoßstange vorne", "schweregrad": 4, '
    '"kosten_schaetzung_aed": {"teile": 1500, "arbeit": 500, "gesamt": 2000}, '
    '"fahrbereit": "ja"}'
)


class FakeSession:
    def __init__(self, vehicle):
        self.vehicle = vehicle
        self.commits = 0

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def get(self, model, ident):
        if self.vehicle is not None and ident == self.vehicle.id:
            return self.vehicle
        return None

    def commit(self):
        self.commits += 1


class FakeStorage:
    def __init__(self):
        self.downloaded = []

    def download_object(self, key):
        self.downloaded.append(key)
        return b"img", "image/jpeg"


def _describer(answer):
    class FakeDescriber:
        def describe(self, images, rate):
            if isinstance(answer, Exception):
                raise answer
            return DescriberResult(text=answer, model="vision-a", attempts=1, duration_ms=5)

    return FakeDescriber


def _vehicle(photo_keys=("vehicles/v1/a.jpg", "vehicles/v1/b.jpg")):
    return SimpleNamespace(
        id="v1",
        photo_keys=list(photo_keys),
        ai_damage_report=dict(OLD_REPORT),
        analysis_status="pending",
        analysis_error=None,
        analysis_retry_count=0,
        analysis_started_at=None,
        analysis_completed_at=None,
    )


@pytest.fixture
def run_task(monkeypatch):
    def run(vehicle, answer=GOOD_ANSWER):
        session = FakeSession(vehicle)
        storage = FakeStorage()
        monkeypatch.setattr(analyze_task, "get_session", lambda: session)
        monkeypatch.setattr(analyze_task, "storage_client", storage)
        monkeypatch.setattr(analyze_task, "get_exchange_rate_sync", lambda session: 4.0)
        monkeypatch.setattr(analyze_task, "DamageDescriber", _describer(answer))
        return analyze_task.analyze_damage("v1"), session, storage

    return run


def test_success_replaces_report_wholesale(run_task):
    vehicle = _vehicle()
    result, session, storage = run_task(vehicle)

    assert result == {"status": "done", "vehicle_id": "v1"}
    assert storage.downloaded == ["vehicles/v1/a.jpg", "vehicles/v1/b.jpg"]
    assert vehicle.analysis_status == "done"
    assert vehicle.analysis_completed_at is not None
    report = vehicle.ai_damage_report
    assert "legacy_field" not in report
    assert report["component"] == "Stoßstange vorne"
    assert report["model"] == "vision-a"
    assert report["photos_analyzed"] == 2
    assert report["severity_breakdown"]["status"] == "ok"
    assert report["created_at"] is not None
    assert session.commits == 2


def test_unusable_answer_fails_without_retry(run_task):
    vehicle = _vehicle()
    result, _, _ = run_task(vehicle, answer="keine Daten")

    assert result == {"status": "failed", "vehicle_id": "v1", "error": "NoJsonFound"}
    assert vehicle.analysis_status == "failed"
    assert vehicle.analysis_error
    assert vehicle.analysis_retry_count == 1
    assert vehicle.ai_damage_report == OLD_REPORT


def test_transport_error_marks_failed_and_retries(run_task):
    vehicle = _vehicle()
    with pytest.raises(DescriberError):
        run_task(vehicle, answer=DescriberError("HTTP 503"))

    assert vehicle.analysis_status == "failed"
    assert vehicle.analysis_error == "HTTP 503"
    assert vehicle.analysis_retry_count == 1
    assert vehicle.ai_damage_report == OLD_REPORT


def test_vehicle_without_photos_fails(run_task):
    vehicle = _vehicle(photo_keys=())
    result, _, storage = run_task(vehicle)

    assert result == {"status": "failed", "vehicle_id": "v1"}
    assert vehicle.analysis_status == "failed"
    assert storage.downloaded == []
    assert vehicle.ai_damage_report == OLD_REPORT


def test_missing_vehicle(run_task):
    result, session, _ = run_task(None)
    assert result == {"status": "missing", "vehicle_id": "v1"}
    assert session.commits == 0
