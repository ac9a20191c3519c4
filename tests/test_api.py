from __future__ import annotations

import io

import pytest
from PIL import Image

from face_attendance.container import wire
from face_attendance.core.exceptions import StorageUnavailable
from face_attendance.main import create_app


def _app(container):
    return create_app(container=container, settings_module="config.testing")


def _login(client, user_id: str, role: str = "employee") -> None:
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role


@pytest.fixture
def client(container):
    return _app(container).test_client()


def test_health_is_public(client):
    resp = client.get("/api/health")

    assert resp.status_code == 200
    assert resp.get_json() == {
        "status": "ok",
        "extractor_ready": False,
        "embedding_dimension": 4,
        "match_threshold": 0.6,
    }


def test_submit_requires_session(client, alice_vector):
    resp = client.post("/api/attendance", json={"embedding": list(alice_vector)})

    assert resp.status_code == 401


def test_submit_records_in_then_out_then_conflicts(client, attendance_repo, alice_vector):
    _login(client, "alice")

    first = client.post("/api/attendance", json={"embedding": list(alice_vector)})
    second = client.post("/api/attendance", json={"embedding": list(alice_vector)})
    third = client.post("/api/attendance", json={"embedding": list(alice_vector)})

    assert first.status_code == 201
    assert first.get_json()["action"] == "time_in"
    assert second.status_code == 201
    assert second.get_json()["action"] == "time_out"
    assert third.status_code == 409
    assert third.get_json()["error"] == "day_already_complete"
    assert len(attendance_repo.events) == 2


def test_client_confidence_score_is_ignored(client, attendance_repo):
    _login(client, "alice")

    resp = client.post(
        "/api/attendance",
        json={"embedding": [0.8, 0.6, 0.0, 0.0], "confidence_score": 1.0},
    )

    assert resp.status_code == 201
    assert resp.get_json()["event"]["confidence_score"] == pytest.approx(0.8)
    assert attendance_repo.events[0].confidence_score == pytest.approx(0.8)


def test_wrong_face_is_forbidden_with_similarity(client, attendance_repo, bob_vector):
    _login(client, "alice")

    resp = client.post("/api/attendance", json={"embedding": list(bob_vector)})

    body = resp.get_json()
    assert resp.status_code == 403
    assert body["error"] == "identity_not_verified"
    assert body["similarity"] == 0.0
    assert body["threshold"] == 0.6
    assert attendance_repo.events == []


def test_not_enrolled_user_gets_404(client, alice_vector):
    _login(client, "carol")

    resp = client.post("/api/attendance", json={"embedding": list(alice_vector)})

    assert resp.status_code == 404
    assert resp.get_json()["error"] == "not_enrolled"


@pytest.mark.parametrize(
    "payload, error",
    [
        ({}, "validation_error"),
        ({"embedding": "face"}, "validation_error"),
        ({"embedding": [1.0, 0.0]}, "dimension_mismatch"),
    ],
)
def test_bad_embedding_payloads(client, payload, error):
    _login(client, "alice")

    resp = client.post("/api/attendance", json=payload)

    assert resp.status_code == 400
    assert resp.get_json()["error"] == error


def test_employee_cannot_submit_for_someone_else(client, bob_vector):
    _login(client, "alice")

    resp = client.post("/api/attendance", json={"user_id": "bob", "embedding": list(bob_vector)})

    assert resp.status_code == 403
    assert resp.get_json()["error"] == "forbidden"


def test_admin_lists_events_for_any_user(client, alice_vector, bob_vector):
    _login(client, "alice")
    client.post("/api/attendance", json={"embedding": list(alice_vector)})
    _login(client, "bob")
    client.post("/api/attendance", json={"embedding": list(bob_vector)})

    _login(client, "root", role="admin")
    everyone = client.get("/api/attendance").get_json()["events"]
    only_bob = client.get("/api/attendance?user_id=bob&kind=in").get_json()["events"]

    assert {e["user_id"] for e in everyone} == {"alice", "bob"}
    assert [e["user_id"] for e in only_bob] == ["bob"]


def test_employee_listing_is_limited_to_self(client, alice_vector, bob_vector):
    _login(client, "bob")
    client.post("/api/attendance", json={"embedding": list(bob_vector)})

    _login(client, "alice")
    resp = client.get("/api/attendance?user_id=bob")

    assert resp.status_code == 200
    assert resp.get_json()["events"] == []


def test_check_reports_day_state(client, alice_vector):
    _login(client, "alice")

    before = client.get("/api/attendance/check").get_json()
    client.post("/api/attendance", json={"embedding": list(alice_vector)})
    after = client.get("/api/attendance/check").get_json()

    assert before["state"] == "EMPTY"
    assert after["state"] == "CLOCKED_IN"
    assert after["has_time_in"] is True
    assert after["time_out"] is None


def test_history_lists_recent_days(client, alice_vector):
    _login(client, "alice")
    client.post("/api/attendance", json={"embedding": list(alice_vector)})

    days = client.get("/api/attendance/history").get_json()["days"]

    assert len(days) == 1
    assert days[0]["state"] == "CLOCKED_IN"


def test_check_rejects_bad_date(client):
    _login(client, "alice")

    resp = client.get("/api/attendance/check?date=02/02/2026")

    assert resp.status_code == 400


def test_image_submit_needs_loaded_extractor(client, container):
    _login(client, "alice")
    buf = io.BytesIO()
    Image.new("RGB", (8, 8)).save(buf, format="PNG")

    not_ready = client.post(
        "/api/attendance/image",
        data={"image": (io.BytesIO(buf.getvalue()), "face.png")},
        content_type="multipart/form-data",
    )
    container.extractor.load()
    ready = client.post(
        "/api/attendance/image",
        data={"image": (io.BytesIO(buf.getvalue()), "face.png")},
        content_type="multipart/form-data",
    )

    assert not_ready.status_code == 503
    assert ready.status_code == 201
    assert ready.get_json()["action"] == "time_in"


def test_face_enrollment_roundtrip(client):
    _login(client, "carol")

    put = client.post("/api/users/carol/face", json={"embeddings": [0.0, 0.0, 1.0, 0.0]})
    got = client.get("/api/users/carol/face")

    assert put.status_code == 200
    assert got.status_code == 200
    assert got.get_json()["embeddings"] == [0.0, 0.0, 1.0, 0.0]


def test_face_enrollment_for_other_user_requires_admin(client):
    _login(client, "alice")
    assert client.post("/api/users/bob/face", json={"embeddings": [0.0, 0.0, 1.0, 0.0]}).status_code == 403

    _login(client, "root", role="admin")
    assert client.post("/api/users/bob/face", json={"embeddings": [0.0, 0.0, 1.0, 0.0]}).status_code == 200


def test_identify_is_admin_only(client, bob_vector):
    _login(client, "alice")
    assert client.post("/api/face/identify", json={"embedding": list(bob_vector)}).status_code == 403

    _login(client, "root", role="admin")
    match = client.post("/api/face/identify", json={"embedding": list(bob_vector)}).get_json()["match"]
    miss = client.post("/api/face/identify", json={"embedding": [0.0, 0.0, 0.0, 1.0]}).get_json()["match"]

    assert match["user_id"] == "bob"
    assert miss is None


class UnavailableAttendance:
    def append(self, event, *, require_kind=None):
        raise StorageUnavailable("Database is unavailable")

    def list_for_day(self, user_id, work_date):
        raise StorageUnavailable("Database is unavailable")

    def list_events(self, event_filter):
        raise StorageUnavailable("Database is unavailable")


def test_storage_outage_is_retryable_503(embeddings_repo, alice_vector):
    container = wire(
        embeddings_repo=embeddings_repo,
        attendance_repo=UnavailableAttendance(),
        match_threshold=0.6,
        embedding_dimension=4,
    )
    client = _app(container).test_client()
    _login(client, "alice")

    resp = client.post("/api/attendance", json={"embedding": list(alice_vector)})

    assert resp.status_code == 503
    assert resp.get_json()["retryable"] is True
