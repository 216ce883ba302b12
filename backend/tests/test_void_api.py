from datetime import datetime, timezone

from app import app
from conftest import issue_token

# 16:30 KST on 2025-01-15
START = datetime(2025, 1, 15, 7, 30, tzinfo=timezone.utc)
END = datetime(2025, 1, 15, 8, 0, tzinfo=timezone.utc)


def _create_activities(client, headers, *names):
    for name in names:
        resp = client.post("/activities", json={"name": name}, headers=headers)
        assert resp.status_code == 201


def test_start_end_and_history(client, make_user, auth_headers, freeze_now):
    user_id = make_user()
    headers = auth_headers(user_id)
    _create_activities(client, headers, "read")

    freeze_now(START)
    started = client.post("/void/start", headers=headers)
    assert started.status_code == 200
    body = started.get_json()
    assert body["session_id"] == ""
    assert body["target_day"] == "2025-01-15"

    again = client.post("/void/start", headers=headers)
    assert again.status_code == 409
    assert again.get_json()["error"]["code"] == "ALREADY_IN_VOID"

    freeze_now(END)
    ended = client.post("/void/end", json={"activities": ["read"]}, headers=headers)
    assert ended.status_code == 200
    session = ended.get_json()
    assert session["duration_sec"] == 1800
    assert session["target_day"] == "2025-01-15"
    assert session["activities"] == ["read"]
    assert session["session_id"]

    history = client.get("/void/history?target_day=2025-01-15", headers=headers)
    assert history.status_code == 200
    payload = history.get_json()
    assert payload["total_duration_sec"] == 1800
    assert [item["session_id"] for item in payload["sessions"]] == [session["session_id"]]

    activities = client.get("/activities", headers=headers).get_json()["activities"]
    assert activities[0]["usage_count"] == 1
    assert activities[0]["last_used_at"] is not None


def test_end_without_start_is_rejected(client, make_user, auth_headers):
    headers = auth_headers(make_user())

    resp = client.post("/void/end", json={"activities": []}, headers=headers)

    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "NOT_IN_VOID"


def test_cancel_discards_the_void(client, make_user, auth_headers, freeze_now):
    headers = auth_headers(make_user())
    freeze_now(START)
    client.post("/void/start", headers=headers)

    cancelled = client.post("/void/cancel", headers=headers)
    assert cancelled.status_code == 200
    assert cancelled.get_json() == {"message": "Void cancelled"}

    history = client.get("/void/history?target_day=2025-01-15", headers=headers)
    assert history.get_json()["sessions"] == []
    assert history.get_json()["total_duration_sec"] == 0

    again = client.post("/void/cancel", headers=headers)
    assert again.status_code == 400
    assert again.get_json()["error"]["code"] == "NOT_IN_VOID"


def test_five_activities_each_counted_once(client, make_user, auth_headers, freeze_now):
    headers = auth_headers(make_user())
    names = ["a", "b", "c", "d", "e"]
    _create_activities(client, headers, *names)

    freeze_now(START)
    client.post("/void/start", headers=headers)
    freeze_now(END)
    resp = client.post("/void/end", json={"activities": names}, headers=headers)
    assert resp.status_code == 200

    activities = client.get("/activities", headers=headers).get_json()["activities"]
    assert sorted(item["name"] for item in activities) == names
    assert all(item["usage_count"] == 1 for item in activities)


def test_six_activities_keep_user_in_void(client, make_user, auth_headers, freeze_now):
    headers = auth_headers(make_user())
    freeze_now(START)
    client.post("/void/start", headers=headers)

    resp = client.post(
        "/void/end", json={"activities": ["a", "b", "c", "d", "e", "f"]}, headers=headers
    )
    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "TOO_MANY_ACTIVITIES"

    live = client.get("/stats/live", headers=headers).get_json()
    assert live["current_void_count"] == 1

    freeze_now(END)
    assert client.post("/void/end", json={}, headers=headers).status_code == 200


def test_unknown_activity_is_not_found(client, make_user, auth_headers, freeze_now):
    headers = auth_headers(make_user())
    freeze_now(START)
    client.post("/void/start", headers=headers)

    resp = client.post("/void/end", json={"activities": ["nope"]}, headers=headers)

    assert resp.status_code == 404
    assert resp.get_json()["error"]["code"] == "ACTIVITY_NOT_FOUND"


def test_void_started_before_day_boundary_belongs_to_previous_day(
    client, make_user, auth_headers, freeze_now
):
    headers = auth_headers(make_user())
    # 15:50 KST
    freeze_now(datetime(2025, 1, 15, 6, 50, tzinfo=timezone.utc))
    client.post("/void/start", headers=headers)
    # 16:20 KST, after the boundary
    freeze_now(datetime(2025, 1, 15, 7, 20, tzinfo=timezone.utc))
    ended = client.post("/void/end", json={}, headers=headers).get_json()

    assert ended["target_day"] == "2025-01-14"
    history = client.get("/void/history?target_day=2025-01-14", headers=headers)
    assert history.get_json()["total_duration_sec"] == 1800


def test_history_requires_target_day(client, make_user, auth_headers):
    headers = auth_headers(make_user())

    resp = client.get("/void/history", headers=headers)

    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "BAD_REQUEST"


def test_test_session_endpoint(client, make_user, auth_headers):
    headers = auth_headers(make_user())
    payload = {
        "started_at": "2025-01-15T16:00:00+09:00",
        "ended_at": "2025-01-15T16:45:00+09:00",
        "activities": [],
    }

    created = client.post("/void/test", json=payload, headers=headers)
    assert created.status_code == 201
    assert created.get_json()["duration_sec"] == 2700
    assert created.get_json()["target_day"] == "2025-01-15"

    backwards = dict(payload, ended_at="2025-01-15T15:00:00+09:00")
    assert client.post("/void/test", json=backwards, headers=headers).status_code == 400

    app.config["ALLOW_TEST_SESSIONS"] = False
    disabled = client.post("/void/test", json=payload, headers=headers)
    assert disabled.status_code == 403
    assert disabled.get_json()["error"]["code"] == "FORBIDDEN"


def test_requests_without_token_are_unauthorized(client):
    resp = client.post("/void/start")

    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "UNAUTHORIZED"


def test_unsafe_request_requires_csrf_header(client, make_user):
    token = issue_token(make_user())

    resp = client.post("/void/start", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 403
    assert resp.get_json()["error"]["code"] == "INVALID_CSRF"


def test_expired_token_rejected(client, make_user):
    token = issue_token(make_user(), expires_in=-60)

    resp = client.get("/stats/live", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "TOKEN_EXPIRED"


def test_token_for_deleted_user_is_unauthorized(client, auth_headers):
    resp = client.post("/void/start", headers=auth_headers(12345))

    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "UNAUTHORIZED"


def test_history_rejects_unpadded_target_day(client, make_user, auth_headers):
    headers = auth_headers(make_user())

    resp = client.get("/void/history?target_day=2025-1-15", headers=headers)

    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "BAD_REQUEST"
