from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from verbdict.db import Base


class Verb(Base):
    __tablename__ = "verbs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    base_word: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    past_tense: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    past_participle: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    definition: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "base_word": self.base_word,
            "past_tense": self.past_tense,
            "past_participle": self.past_participle,
            "definition": self.definition,
            "note": self.note,
        }


class AttemptRecord(Base):
    """Failed verification counter for one client identity.

    ``last_attempt_at`` is stored as epoch milliseconds so the cooldown
    arithmetic can run inside the upsert statement.
    """

    __tablename__ = "attempts"

    identity: Mapped[str] = mapped_column(String(255), primary_key=True)
    fail_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_attempt_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def __repr__(self) -> str:
        return f"<AttemptRecord {self.identity} fails={self.fail_count}>"
