from __future__ import annotations

import time
from typing import Optional

from sqlalchemy import case, delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from verbdict.core.settings import GuardConfig
from verbdict.db_models import AttemptRecord

# Dialects with INSERT .. ON CONFLICT DO UPDATE.
_UPSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class AttemptLedger:
    """Failed verification counters persisted in the ``attempts`` table."""

    def __init__(self, db: Session, config: GuardConfig) -> None:
        self._db = db
        self._config = config

    def now_ms(self) -> int:
        return int(time.time() * 1000)

    def get(self, identity: str) -> Optional[AttemptRecord]:
        stmt = (
            select(AttemptRecord)
            .where(AttemptRecord.identity == identity)
            .execution_options(populate_existing=True)
        )
        return self._db.execute(stmt).scalar_one_or_none()

    def _failure_upsert(self, identity: str, now: int):
        dialect = self._db.get_bind().dialect.name
        insert = _UPSERTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"attempt ledger has no upsert for dialect {dialect!r}")

        table = AttemptRecord.__table__
        if self._config.cooldown_ms >= 0:
            # A failure after the cooldown has elapsed starts a fresh window.
            fail_count = case(
                (now - table.c.last_attempt_at > self._config.cooldown_ms, 1),
                else_=table.c.fail_count + 1,
            )
        else:
            fail_count = table.c.fail_count + 1

        stmt = insert(table).values(identity=identity, fail_count=1, last_attempt_at=now)
        return stmt.on_conflict_do_update(
            index_elements=[table.c.identity],
            set_={"fail_count": fail_count, "last_attempt_at": now},
        )

    def record_outcome(self, identity: str, success: bool) -> None:
        """
        Record the result of one verification.

        Success forgets the identity entirely; failure is a single atomic
        upsert so concurrent failures from one identity are never lost.
        """
        try:
            if success:
                self._db.execute(delete(AttemptRecord).where(AttemptRecord.identity == identity))
            else:
                self._db.execute(self._failure_upsert(identity, self.now_ms()))
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            raise


__all__ = ["AttemptLedger"]
