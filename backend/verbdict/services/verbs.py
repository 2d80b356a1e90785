from __future__ import annotations

import csv
import io
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from verbdict.db_models import Verb
from verbdict.models import VerbRow

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ("base_word", "past_tense", "past_participle", "definition", "note")


def _filtered(q: str, mode: str):
    stmt = select(Verb)
    if not q:
        return stmt
    if mode == "exact":
        return stmt.where(func.lower(Verb.base_word) == func.lower(q))
    pattern = f"%{q}%"
    return stmt.where(or_(Verb.base_word.like(pattern), Verb.definition.like(pattern)))


def search_verbs(
    db: Session,
    q: str = "",
    mode: str = "fuzzy",
    limit: Optional[int] = None,
    offset: int = 0,
) -> Tuple[List[Verb], int]:
    """Matching verbs ordered by base word, plus the total match count. ``limit=None`` returns all."""
    stmt = _filtered(q, mode)
    total = db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()

    page = stmt.order_by(Verb.base_word.asc(), Verb.id.asc()).offset(offset)
    if limit is not None:
        page = page.limit(limit)
    return list(db.execute(page).scalars()), int(total)


def _find_duplicate(db: Session, row: VerbRow) -> Optional[Verb]:
    stmt = (
        select(Verb)
        .where(
            func.lower(Verb.base_word) == func.lower(row.base),
            func.lower(Verb.past_tense) == func.lower(row.past),
        )
        .limit(1)
    )
    return db.execute(stmt).scalars().first()


def import_rows(db: Session, rows: Iterable[VerbRow], mode: str = "skip") -> Tuple[int, int]:
    """
    Insert rows into the dictionary.

    A row duplicates an existing verb when base word and past tense match
    case-insensitively. ``skip`` leaves the existing verb, ``update`` replaces
    it and ``insert`` adds the row regardless. Rows without a base word are
    ignored. Returns ``(added, skipped)``.
    """
    added = 0
    skipped = 0
    for row in rows:
        if not (row.base or "").strip():
            continue

        if mode != "insert":
            existing = _find_duplicate(db, row)
            if existing is not None:
                if mode == "skip":
                    skipped += 1
                    continue
                db.delete(existing)
                db.flush()

        db.add(
            Verb(
                base_word=row.base,
                past_tense=row.past,
                past_participle=row.part,
                definition=row.definition,
                note=row.note,
            )
        )
        # Later rows in the same batch must see this one as a duplicate.
        db.flush()
        added += 1

    db.commit()
    logger.info("Imported verbs mode=%s added=%d skipped=%d", mode, added, skipped)
    return added, skipped


def update_verb(db: Session, verb_id: int, row: VerbRow) -> bool:
    verb = db.get(Verb, verb_id)
    if verb is None:
        return False
    verb.base_word = row.base
    verb.past_tense = row.past
    verb.past_participle = row.part
    verb.definition = row.definition
    verb.note = row.note
    db.commit()
    return True


def delete_verbs(db: Session, ids: Sequence[int]) -> int:
    if not ids:
        return 0
    result = db.execute(delete(Verb).where(Verb.id.in_(list(ids))))
    db.commit()
    return result.rowcount or 0


def export_delimited(verbs: Iterable[Verb], delimiter: str = ",") -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=delimiter, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for verb in verbs:
        writer.writerow([getattr(verb, column) or "" for column in EXPORT_COLUMNS])
    return buf.getvalue()


__all__ = [
    "EXPORT_COLUMNS",
    "search_verbs",
    "import_rows",
    "update_verb",
    "delete_verbs",
    "export_delimited",
]
