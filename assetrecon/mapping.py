"""Old-code to new-code mapping import.

Two stages: :func:`load_mapping` dedupes the spreadsheet rows, then
:class:`CodeMappingStore` upserts them into ``old_as_code_new``.
"""

from __future__ import annotations

import logging
import secrets
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from sqlalchemy import Column, MetaData, String, Table, delete, func, insert, select, update

from .database import DataSource
from .errors import InputError
from .ingest import read_raw_rows
from .models import CodeMapping, MappingConflict, UpsertCounts

LOGGER = logging.getLogger(__name__)

metadata = MetaData()

code_mapping_table = Table(
    "old_as_code_new",
    metadata,
    Column("ID", String(32), primary_key=True),
    Column("OLD_AS_CODE", String(50), nullable=False, unique=True),
    Column("NEW_AS_CODE", String(80), nullable=False),
)


def _cell(value: Any) -> str:
    return "" if value is None else str(value).strip()


def find_code_columns(header: Sequence[Any]) -> Tuple[int, int]:
    labels = [_cell(h).lower() for h in header]
    old_idx = next((i for i, label in enumerate(labels) if "old" in label), -1)
    new_idx = next((i for i, label in enumerate(labels) if "new" in label), -1)
    if old_idx == -1 or new_idx == -1:
        raise InputError("Mapping sheet must contain OLD_AS_CODE and NEW_AS_CODE columns")
    return old_idx, new_idx


def read_mapping_rows(path: str) -> List[Tuple[int, str, str]]:
    """Read ``(row_number, old_code, new_code)`` tuples from the first sheet.

    Row numbers count data rows from 1. Cells past the end of a short row are
    returned as empty strings and filtered later by :func:`load_mapping`.
    """
    raw = read_raw_rows(path)
    if len(raw) < 2:
        raise InputError(f"{path} needs a header row and at least one data row")
    LOGGER.info("Mapping sheet header: %s", raw[0])
    old_idx, new_idx = find_code_columns(raw[0])
    rows: List[Tuple[int, str, str]] = []
    for number, row in enumerate(raw[1:], start=1):
        old_code = _cell(row[old_idx]) if old_idx < len(row) else ""
        new_code = _cell(row[new_idx]) if new_idx < len(row) else ""
        rows.append((number, old_code, new_code))
    return rows


def load_mapping(rows: Iterable[Tuple[int, str, str]]) -> Tuple[List[CodeMapping], List[MappingConflict]]:
    """Dedupe mapping rows by old code, last row wins.

    A repeat with a different new code is recorded as a conflict and logged;
    it is policy, not an error. Rows missing either code are skipped.
    """
    entries: Dict[str, CodeMapping] = {}
    conflicts: List[MappingConflict] = []
    total = 0
    for number, old_code, new_code in rows:
        total += 1
        if not old_code or not new_code:
            continue
        existing = entries.get(old_code)
        if existing is not None:
            if existing.new_code != new_code:
                conflicts.append(MappingConflict(old_code, existing.row, existing.new_code, number, new_code))
                LOGGER.warning(
                    'Conflict for old code "%s": row %d -> %s, row %d -> %s; keeping row %d',
                    old_code, existing.row, existing.new_code, number, new_code, number,
                )
            else:
                LOGGER.info('Duplicate old code "%s" with the same new code "%s"', old_code, new_code)
        entries[old_code] = CodeMapping(old_code, new_code, number)

    mappings = list(entries.values())
    LOGGER.info("Read %d rows, %d unique mappings", total, len(mappings))
    return mappings, conflicts


def generate_id() -> str:
    return secrets.token_hex(16)


class CodeMappingStore:
    def __init__(self, source: DataSource):
        self.source = source

    def ensure_table(self) -> None:
        conn = self.source.connect()
        metadata.create_all(conn)
        conn.commit()
        LOGGER.info("Table %s is ready", code_mapping_table.name)

    def clear(self) -> int:
        removed = self.source.execute(delete(code_mapping_table))
        LOGGER.info("Cleared %d existing mappings", removed)
        return removed

    def existing_new_code(self, old_code: str) -> Any:
        rows = self.source.query(
            select(code_mapping_table.c.NEW_AS_CODE).where(code_mapping_table.c.OLD_AS_CODE == old_code)
        )
        return rows[0]["NEW_AS_CODE"] if rows else None

    def upsert(self, mappings: Iterable[CodeMapping]) -> UpsertCounts:
        # An unchanged value still counts as updated.
        counts = UpsertCounts()
        for mapping in mappings:
            if self.existing_new_code(mapping.old_code) is None:
                mapping.id = generate_id()
                self.source.execute(
                    insert(code_mapping_table).values(
                        ID=mapping.id, OLD_AS_CODE=mapping.old_code, NEW_AS_CODE=mapping.new_code
                    )
                )
                counts.inserted += 1
                LOGGER.debug("Inserted %s -> %s", mapping.old_code, mapping.new_code)
            else:
                self.source.execute(
                    update(code_mapping_table)
                    .where(code_mapping_table.c.OLD_AS_CODE == mapping.old_code)
                    .values(NEW_AS_CODE=mapping.new_code)
                )
                counts.updated += 1
                LOGGER.debug("Updated %s -> %s", mapping.old_code, mapping.new_code)
        LOGGER.info("Upsert done: inserted=%d updated=%d", counts.inserted, counts.updated)
        return counts

    def count(self) -> int:
        rows = self.source.query(select(func.count().label("total")).select_from(code_mapping_table))
        return int(rows[0]["total"])

    def sample(self, limit: int = 5) -> List[Tuple[str, str]]:
        rows = self.source.query(
            select(code_mapping_table.c.OLD_AS_CODE, code_mapping_table.c.NEW_AS_CODE).limit(limit)
        )
        return [(row["OLD_AS_CODE"], row["NEW_AS_CODE"]) for row in rows]
