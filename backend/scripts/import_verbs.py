from __future__ import annotations

import argparse
import csv
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from verbdict.db import SessionLocal, init_db
from verbdict.models import VerbRow
from verbdict.services.verbs import import_rows

FIELDS = ("base", "past", "part", "def", "note")

# Header names recognised when no explicit --columns mapping is given.
HEADER_ALIASES: Dict[str, str] = {
    "base": "base",
    "base_word": "base",
    "past": "past",
    "past_tense": "past",
    "part": "part",
    "past_participle": "part",
    "def": "def",
    "definition": "def",
    "note": "note",
}


def parse_columns(text: str) -> Dict[str, int]:
    """Parse ``base=0,past=1`` into a field -> column index mapping."""
    mapping: Dict[str, int] = {}
    for item in text.split(","):
        if not item.strip():
            continue
        field, _, index = item.partition("=")
        field = field.strip()
        if field not in FIELDS:
            raise ValueError(f"unknown field: {field}")
        position = int(index)
        if position < 0:
            raise ValueError(f"column index must not be negative: {item.strip()}")
        mapping[field] = position
    if "base" not in mapping:
        raise ValueError("mapping must include base")
    return mapping


def columns_from_header(header: Sequence[str]) -> Dict[str, int]:
    mapping: Dict[str, int] = {}
    for index, name in enumerate(header):
        field = HEADER_ALIASES.get(name.strip().lower())
        if field and field not in mapping:
            mapping[field] = index
    if "base" not in mapping:
        raise ValueError("header has no base/base_word column")
    return mapping


def read_rows(path: Path, delimiter: str, columns: Optional[Dict[str, int]]) -> List[VerbRow]:
    with path.open(newline="", encoding="utf-8-sig") as handle:
        records = list(csv.reader(handle, delimiter=delimiter))
    if not records:
        return []
    if columns is None:
        columns = columns_from_header(records[0])
        records = records[1:]

    rows: List[VerbRow] = []
    for record in records:
        values = {
            field: (record[index].strip() if index < len(record) else None)
            for field, index in columns.items()
        }
        rows.append(VerbRow.model_validate(values))
    return rows


def import_file(path: Path, delimiter: str = ",", mode: str = "skip", columns: Optional[str] = None) -> int:
    if not path.exists():
        print(f"[ERR] File not found: {path}")
        return 2
    try:
        mapping = parse_columns(columns) if columns else None
        rows = read_rows(path, delimiter, mapping)
    except ValueError as exc:
        print(f"[ERR] {exc}")
        return 3

    init_db()
    with SessionLocal() as db:
        added, skipped = import_rows(db, rows, mode)
    print(f"[OK] Imported {path}: added={added} skipped={skipped}")
    return 0


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import verbs from a delimited text file.")
    parser.add_argument("file", type=Path, help="CSV/TSV file to import")
    parser.add_argument("--delimiter", default=",", help="Field delimiter (default ',')")
    parser.add_argument(
        "--mode",
        choices=["skip", "update", "insert"],
        default="skip",
        help="How to treat rows whose base word and past tense already exist",
    )
    parser.add_argument(
        "--columns",
        default=None,
        help="Explicit mapping such as base=0,past=1,part=2,def=3,note=4 (file has no header row)",
    )
    return parser.parse_args(argv)


if __name__ == "__main__":
    options = _parse_args()
    delimiter = "\t" if options.delimiter == "\\t" else options.delimiter
    raise SystemExit(import_file(options.file, delimiter, options.mode, options.columns))
