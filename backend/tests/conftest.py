import os
import tempfile
from datetime import datetime, timedelta, timezone

# The app binds its engine on import, so the database and day settings must
# be in place before anything imports it.
_SQLITE_DIR = tempfile.mkdtemp(prefix="voidtrack-tests-")
os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL") or (
    f"sqlite:///{os.path.join(_SQLITE_DIR, 'voidtrack.db')}"
)
os.environ["VOID_DAY_START_HOUR"] = "16"
os.environ["VOID_TIMEZONE"] = "Asia/Seoul"

import jwt  # noqa: E402
import pytest  # noqa: E402
from app import app  # noqa: E402
from extensions import db  # noqa: E402
from repositories import users_repo  # noqa: E402
from services.common import reset_now_provider, set_now_provider  # noqa: E402

CSRF_TOKEN = "csrf-test-token"


def _reset_schema() -> None:
    db.session.remove()
    db.drop_all()
    db.create_all()


@pytest.fixture()
def client():
    app.config.update({"TESTING": True, "ALLOW_TEST_SESSIONS": True})

    with app.app_context():
        _reset_schema()
    reset_now_provider()

    with app.test_client() as client:
        yield client

    reset_now_provider()
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def freeze_now():
    """Pin ``services.common.utcnow`` to the given instant."""

    def _freeze(instant: datetime) -> datetime:
        set_now_provider(lambda: instant)
        return instant

    yield _freeze
    reset_now_provider()


@pytest.fixture()
def make_user(client):
    def _make_user(nickname: str = "sleeper") -> int:
        with app.app_context():
            return users_repo.create_user(nickname)

    return _make_user


def issue_token(user_id: int, *, csrf: str = CSRF_TOKEN, expires_in: int = 3600) -> str:
    payload = {
        "sub": str(user_id),
        "csrf": csrf,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, app.config["JWT_SECRET"], algorithm="HS256")


@pytest.fixture()
def auth_headers():
    def _headers(user_id: int) -> dict:
        return {
            "Authorization": f"Bearer {issue_token(user_id)}",
            "X-CSRF-Token": CSRF_TOKEN,
        }

    return _headers
