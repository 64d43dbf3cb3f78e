"""Annotate a sheet of old asset codes with the asset they were renamed to.

Lookups run one at a time with a fixed delay between records to keep the load
on the red system low. A lookup that raises marks its row ``failed`` and the
batch carries on.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .models import Resolution

LOGGER = logging.getLogger(__name__)

FOUND = "found"
NOT_FOUND = "not_found"
FAILED = "failed"
NO_CODE = "no_code"

NOT_FOUND_CODE = "000"

CODE_COLUMNS = ("Original_Code", "Code")

Lookup = Callable[[str], Optional[Mapping[str, Any]]]


def original_code(row: Mapping[str, Any]) -> str:
    for key in CODE_COLUMNS:
        value = row.get(key)
        if value not in (None, ""):
            return str(value).strip()
    first = next(iter(row.values()), None)
    return "" if first is None else str(first).strip()


def _unresolved(row: Dict[str, Any], code: str, status: str) -> Resolution:
    return Resolution(source=row, original_code=code, status=status, new_code=NOT_FOUND_CODE)


def resolve_one(row: Dict[str, Any], lookup: Lookup) -> Resolution:
    code = original_code(row)
    if not code:
        LOGGER.warning("Skipping row without an asset code: %s", row)
        return _unresolved(row, "", NO_CODE)
    info = lookup(code)
    if info is None:
        LOGGER.info("No new asset for %s", code)
        return _unresolved(row, code, NOT_FOUND)
    return Resolution(
        source=row,
        original_code=code,
        status=FOUND,
        new_code=info.get("new_code") or "",
        new_name=info.get("new_name") or "",
        new_level=info.get("new_level", ""),
        new_asset_type=info.get("new_asset_type") or "",
        new_leasable_area=info.get("new_leasable_area", ""),
    )


def resolve_codes(
    rows: Sequence[Dict[str, Any]],
    lookup: Lookup,
    delay: float = 0.1,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Resolution]:
    results: List[Resolution] = []
    for idx, row in enumerate(rows):
        LOGGER.info("%d/%d", idx + 1, len(rows))
        try:
            results.append(resolve_one(row, lookup))
        except Exception as exc:
            LOGGER.warning("Lookup failed for %s: %s", row, exc)
            results.append(_unresolved(row, original_code(row), FAILED))
        if delay > 0 and idx < len(rows) - 1:
            sleep(delay)
    return results


def status_counts(results: Sequence[Resolution]) -> Dict[str, int]:
    counts = {FOUND: 0, NOT_FOUND: 0, FAILED: 0, NO_CODE: 0}
    for result in results:
        counts[result.status] = counts.get(result.status, 0) + 1
    return counts
