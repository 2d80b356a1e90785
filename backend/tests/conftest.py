import os
import tempfile
from pathlib import Path

import pytest

# Point the app at a throwaway database before anything imports verbdict.db.
_TMP = Path(tempfile.mkdtemp(prefix="verbdict-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'test.sqlite3'}"
os.environ["AUTH_LOG_FILE"] = str(_TMP / "auth.log")
os.environ["ADMIN_PASSWORD"] = "letmein-admin"

from fastapi.testclient import TestClient  # noqa: E402

from verbdict.core.settings import get_settings  # noqa: E402
from verbdict.db import SessionLocal, init_db  # noqa: E402
from verbdict.db_models import AttemptRecord, Verb  # noqa: E402
from verbdict.main import app  # noqa: E402

ADMIN_PASSWORD = "letmein-admin"


@pytest.fixture(autouse=True)
def _clean_state():
    get_settings.cache_clear()
    init_db()
    with SessionLocal() as db:
        db.query(AttemptRecord).delete()
        db.query(Verb).delete()
        db.commit()
    app.state.limiter.reset()
    yield
    get_settings.cache_clear()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock(monkeypatch):
    """Freeze ``time.time`` as seen by the attempt ledger; advance with ``clock.advance(ms)``."""

    class _Clock:
        def __init__(self) -> None:
            self.now = 1_700_000_000.0

        def advance(self, ms: int) -> None:
            self.now += ms / 1000

        @property
        def now_ms(self) -> int:
            return int(self.now * 1000)

    fake = _Clock()
    monkeypatch.setattr("verbdict.security.attempts.time.time", lambda: fake.now)
    return fake
