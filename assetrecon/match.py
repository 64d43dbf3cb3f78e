from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

from rapidfuzz import fuzz, process

from .models import METHOD_CODE, METHOD_NAME, METHOD_NONE, AssetRecord

LOGGER = logging.getLogger(__name__)


def _linked_by_code(source: AssetRecord, candidate: AssetRecord) -> bool:
    if source.code and candidate.old_code == source.code:
        return True
    return bool(source.old_code) and source.old_code == candidate.code


def find_match(source: AssetRecord, candidates: Sequence[AssetRecord]) -> Tuple[Optional[AssetRecord], str]:
    """Find the counterpart of ``source`` in the other system.

    A rename pointer (``old_code``) in either direction wins over a name match.
    Within a tier the first candidate in list order is taken; nothing is sorted
    or scored, so duplicate names resolve to their first occurrence.
    """
    for candidate in candidates:
        if _linked_by_code(source, candidate):
            LOGGER.debug("Matched by code: %s -> %s", source.code, candidate.code)
            return candidate, METHOD_CODE

    if source.name:
        for candidate in candidates:
            if candidate.name and candidate.name == source.name:
                LOGGER.debug("Matched by name: %s -> %s", source.name, candidate.code)
                return candidate, METHOD_NAME

    LOGGER.debug("No match: %s - %s", source.code, source.name)
    return None, METHOD_NONE


def match(source: AssetRecord, candidates: Sequence[AssetRecord]) -> Optional[AssetRecord]:
    found, _ = find_match(source, candidates)
    return found


def closest_name(source: AssetRecord, candidates: Sequence[AssetRecord], cutoff: float = 80.0) -> str:
    # Reporting hint only; never used to decide a match.
    names = [c.name for c in candidates if c.name]
    if not source.name or not names:
        return ""
    best = process.extractOne(source.name, names, scorer=fuzz.WRatio, score_cutoff=cutoff)
    return best[0] if best else ""
