"""Assemble parent/child trees from flat asset tables.

Both builders take a ``child_fetch(parent_code)`` callable returning the direct
children of a code, so the SQL stays in :mod:`assetrecon.repository` and tests
can drive the builders with plain dictionaries.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Sequence, Tuple

from .models import AssetRecord, HierarchyRow

LOGGER = logging.getLogger(__name__)

ChildFetch = Callable[[str], List[AssetRecord]]

MAX_DEPTH = 3


def build_two_level(parents: Sequence[AssetRecord], child_fetch: ChildFetch) -> List[HierarchyRow]:
    rows: List[HierarchyRow] = []
    for idx, parent in enumerate(parents, start=1):
        LOGGER.info("%d/%d %s - %s", idx, len(parents), parent.code, parent.name)
        children = child_fetch(parent.code)
        rows.append(HierarchyRow(parent, "", [child.code for child in children]))
        for child in children:
            rows.append(HierarchyRow(child, parent.code, []))
        LOGGER.info("  %d children", len(children))
    LOGGER.info("Two-level hierarchy built: %d rows", len(rows))
    return rows


def _collect(
    parent_code: str,
    depth: int,
    child_fetch: ChildFetch,
    children_of: Dict[str, List[str]],
    max_depth: int,
) -> List[AssetRecord]:
    direct = child_fetch(parent_code)
    children_of[parent_code] = [child.code for child in direct]
    collected = list(direct)
    for child in direct:
        if depth < max_depth:
            collected.extend(_collect(child.code, depth + 1, child_fetch, children_of, max_depth))
        else:
            # Deepest level: list its children without emitting them.
            children_of[child.code] = [grandchild.code for grandchild in child_fetch(child.code)]
    return collected


def collect_descendants(
    root: AssetRecord, child_fetch: ChildFetch, max_depth: int = MAX_DEPTH
) -> Tuple[List[AssetRecord], Dict[str, List[str]]]:
    """Walk ``root`` down to ``max_depth`` levels with one query per node.

    Returns the flattened descendants and the direct-children index for every
    node. Each call yields its direct children followed by each child's own
    descendants. Nodes at ``max_depth`` are queried for their child codes, but
    those children are not emitted.
    """
    children_of: Dict[str, List[str]] = {}
    descendants = _collect(root.code, 1, child_fetch, children_of, max_depth)
    return descendants, children_of


def build_deep_tree(
    roots: Sequence[AssetRecord], child_fetch: ChildFetch, max_depth: int = MAX_DEPTH
) -> List[HierarchyRow]:
    rows: List[HierarchyRow] = []
    root_index: Dict[str, AssetRecord] = {}
    for root in roots:
        root_index.setdefault(root.code, root)

    for idx, root in enumerate(roots, start=1):
        LOGGER.info("%d/%d %s - %s", idx, len(roots), root.code, root.name)
        descendants, children_of = collect_descendants(root, child_fetch, max_depth)

        index = dict(root_index)
        for record in descendants:
            index.setdefault(record.code, record)

        rows.append(HierarchyRow(root, "", children_of.get(root.code, [])))
        for record in descendants:
            parent = record.parent_code if record.parent_code and record.parent_code in index else ""
            child_codes = children_of.get(record.code, [])
            if child_codes:
                LOGGER.debug("  %s (level %s) has %d children", record.code, record.level, len(child_codes))
            rows.append(HierarchyRow(record, parent, child_codes))
        LOGGER.info("  %d descendants", len(descendants))

    LOGGER.info("Deep hierarchy built: %d rows", len(rows))
    return rows
