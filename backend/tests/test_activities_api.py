from datetime import datetime, timezone


def test_create_and_list_activities(client, make_user, auth_headers):
    headers = auth_headers(make_user())

    created = client.post("/activities", json={"name": " read "}, headers=headers)
    assert created.status_code == 201
    body = created.get_json()
    assert body["name"] == "read"
    assert body["usage_count"] == 0
    assert body["last_used_at"] is None

    listing = client.get("/activities", headers=headers)
    assert listing.status_code == 200
    assert [item["name"] for item in listing.get_json()["activities"]] == ["read"]


def test_duplicate_activity_is_conflict(client, make_user, auth_headers):
    headers = auth_headers(make_user())
    client.post("/activities", json={"name": "read"}, headers=headers)

    resp = client.post("/activities", json={"name": "read"}, headers=headers)

    assert resp.status_code == 409
    assert resp.get_json()["error"]["code"] == "ACTIVITY_ALREADY_EXISTS"


def test_activity_names_are_per_user(client, make_user, auth_headers):
    first = auth_headers(make_user("first"))
    second = auth_headers(make_user("second"))

    assert client.post("/activities", json={"name": "read"}, headers=first).status_code == 201
    assert client.post("/activities", json={"name": "read"}, headers=second).status_code == 201


def test_invalid_activity_names(client, make_user, auth_headers):
    headers = auth_headers(make_user())

    for payload in ({"name": ""}, {"name": "x" * 11}, {}):
        resp = client.post("/activities", json=payload, headers=headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "INVALID_ACTIVITY_NAME"


def test_delete_activity(client, make_user, auth_headers):
    owner = auth_headers(make_user("owner"))
    stranger = auth_headers(make_user("stranger"))
    activity_id = client.post(
        "/activities", json={"name": "walk"}, headers=owner
    ).get_json()["id"]

    foreign = client.delete(f"/activities/{activity_id}", headers=stranger)
    assert foreign.status_code == 404
    assert foreign.get_json()["error"]["code"] == "ACTIVITY_NOT_FOUND"

    deleted = client.delete(f"/activities/{activity_id}", headers=owner)
    assert deleted.status_code == 200

    again = client.delete(f"/activities/{activity_id}", headers=owner)
    assert again.status_code == 404
    assert client.get("/activities", headers=owner).get_json()["activities"] == []


def test_recently_used_activity_listed_first(client, make_user, auth_headers, freeze_now):
    headers = auth_headers(make_user())
    for name in ("alpha", "beta"):
        client.post("/activities", json={"name": name}, headers=headers)

    freeze_now(datetime(2025, 1, 15, 7, 30, tzinfo=timezone.utc))
    client.post("/void/start", headers=headers)
    freeze_now(datetime(2025, 1, 15, 8, 0, tzinfo=timezone.utc))
    client.post("/void/end", json={"activities": ["beta"]}, headers=headers)

    names = [
        item["name"]
        for item in client.get("/activities", headers=headers).get_json()["activities"]
    ]
    assert names == ["beta", "alpha"]
