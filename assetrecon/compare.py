from __future__ import annotations

import logging
from typing import List, Sequence, Set

from .match import closest_name, find_match
from .models import MATCHED, METHOD_NONE, UNMATCHED, AssetRecord, ComparisonResult, ComparisonRow

LOGGER = logging.getLogger(__name__)


def compare_assets(
    primary: Sequence[AssetRecord],
    secondary: Sequence[AssetRecord],
    primary_system: str = "blue",
    secondary_system: str = "red",
) -> ComparisonResult:
    """Full-outer comparison driven by ``primary``.

    One row per primary record, matched or not, followed by one trailing row
    for every secondary record no primary record claimed. Claimed secondary
    codes are returned in ``used_secondary``.
    """
    LOGGER.info("Comparing %s (%d) against %s (%d)", primary_system, len(primary), secondary_system, len(secondary))
    rows: List[ComparisonRow] = []
    used: Set[str] = set()

    for idx, record in enumerate(primary, start=1):
        LOGGER.debug("%d/%d %s - %s", idx, len(primary), record.code, record.name)
        found, method = find_match(record, secondary)
        if found is not None:
            used.add(found.code)
            rows.append(ComparisonRow(record, found, MATCHED, method))
        else:
            rows.append(ComparisonRow(record, None, UNMATCHED, METHOD_NONE, closest_name(record, secondary)))

    for record in secondary:
        if record.code in used:
            continue
        rows.append(ComparisonRow(None, record, UNMATCHED, METHOD_NONE))

    result = ComparisonResult(primary_system, secondary_system, rows, frozenset(used))
    LOGGER.info(
        "Comparison %s/%s: matched=%d unmatched=%d total=%d",
        primary_system, secondary_system, result.matched_count, result.unmatched_count, result.total,
    )
    return result


def _driven(result: ComparisonResult) -> ComparisonResult:
    rows = [row for row in result.rows if row.primary is not None]
    return ComparisonResult(result.primary_system, result.secondary_system, rows, result.used_secondary)


def primary_driven(
    primary: Sequence[AssetRecord],
    secondary: Sequence[AssetRecord],
    primary_system: str = "blue",
    secondary_system: str = "red",
) -> ComparisonResult:
    return _driven(compare_assets(primary, secondary, primary_system, secondary_system))


def secondary_driven(
    primary: Sequence[AssetRecord],
    secondary: Sequence[AssetRecord],
    primary_system: str = "blue",
    secondary_system: str = "red",
) -> ComparisonResult:
    return _driven(compare_assets(secondary, primary, secondary_system, primary_system))
