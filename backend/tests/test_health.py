from click.testing import CliRunner

import manage
from app import app
from infra import health_service


def test_home_and_health_are_public(client):
    assert client.get("/").get_json() == {"status": "ok"}

    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["db_ok"] is True
    assert body["status"] == "ok"


def test_health_reports_unavailable_database(client, monkeypatch):
    monkeypatch.setattr(health_service, "check_db_connection", lambda: False)

    resp = client.get("/health")

    assert resp.status_code == 503
    assert resp.get_json()["db_ok"] is False


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/nope")

    assert resp.status_code == 404
    assert resp.get_json()["error"]["code"] == "NOT_FOUND"


def test_flask_health_command(client):
    result = app.test_cli_runner().invoke(args=["health"])

    assert result.exit_code == 0
    assert "Status: HEALTHY" in result.output


def test_manage_create_user_and_warm_stats(client):
    runner = CliRunner()

    created = runner.invoke(manage.cli, ["create-user", "--nickname", "night owl"])
    assert created.exit_code == 0
    assert "night owl" in created.output

    warmed = runner.invoke(manage.cli, ["warm-stats", "--target-day", "2020-01-01"])
    assert warmed.exit_code == 0
    assert '"buckets": 144' in warmed.output

    bad = runner.invoke(manage.cli, ["warm-stats", "--target-day", "yesterday"])
    assert bad.exit_code != 0
