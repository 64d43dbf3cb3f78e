from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .compare import primary_driven, secondary_driven
from .config import Settings
from .database import DataSource
from .errors import ConfigError, InputError
from .export_excel import (
    report_path,
    write_comparison,
    write_hierarchy,
    write_mapping_summary,
    write_resolutions,
)
from .hierarchy import build_deep_tree, build_two_level
from .ingest import find_latest_export, read_sheet, records_from_sheet
from .mapping import CodeMappingStore, load_mapping, read_mapping_rows
from .models import HierarchyRow, UpsertCounts
from .repository import AssetRepository
from .resolve import resolve_codes, status_counts

LOGGER = logging.getLogger(__name__)

BLUE_HIERARCHY = "blue_hierarchy"
RED_HIERARCHY = "red_hierarchy"
BLUE_COMPARISON = "blue_comparison"
RED_COMPARISON = "red_comparison"
MAPPING_IMPORT = "code_mapping_import"
CODE_RESOLUTION = "code_resolution"


def _source(settings: Settings, key: str) -> DataSource:
    return DataSource(settings.profile(key), name=key)


def _level_counts(rows: Sequence[HierarchyRow]) -> Dict[object, int]:
    return dict(Counter(row.record.level for row in rows))


def export_blue_hierarchy(settings: Settings) -> Optional[str]:
    source = _source(settings, settings.blue_profile)
    try:
        repo = AssetRepository(source, settings.management_area, settings.query_date())
        LOGGER.info("Querying level-1 blue assets for %s", settings.management_area)
        parents = repo.blue_top_assets()
        if not parents:
            LOGGER.warning("No level-1 assets found")
            return None
        rows = build_two_level(parents, repo.blue_children)
    finally:
        source.close()

    path = report_path(settings.output_dir, BLUE_HIERARCHY, settings.management_area)
    write_hierarchy(path, rows, "Blue hierarchy")
    LOGGER.info("Levels: %s", _level_counts(rows))
    return path


def export_red_hierarchy(settings: Settings) -> Optional[str]:
    source = _source(settings, settings.red_profile)
    try:
        repo = AssetRepository(source, settings.management_area, settings.query_date())
        LOGGER.info("Querying top-level (-99) red assets for %s", settings.management_area)
        roots = repo.red_top_assets()
        if not roots:
            LOGGER.warning("No top-level assets found")
            return None
        rows = build_deep_tree(roots, repo.red_children)
    finally:
        source.close()

    path = report_path(settings.output_dir, RED_HIERARCHY, settings.management_area)
    write_hierarchy(path, rows, "Red hierarchy")
    LOGGER.info("Levels: %s", _level_counts(rows))
    return path


def _comparison_inputs(settings: Settings) -> Tuple[str, str]:
    if settings.blue_file and settings.red_file:
        blue = str(Path(settings.output_dir) / settings.blue_file)
        red = str(Path(settings.output_dir) / settings.red_file)
        for path in (blue, red):
            if not Path(path).exists():
                raise ConfigError(f"Comparison input not found: {path}")
        return blue, red

    blue = find_latest_export(settings.output_dir, BLUE_HIERARCHY, settings.management_area)
    if blue is None:
        raise ConfigError("No blue hierarchy export found; run `assetrecon blue-hierarchy` first")
    red = find_latest_export(settings.output_dir, RED_HIERARCHY, settings.management_area)
    if red is None:
        raise ConfigError("No red hierarchy export found; run `assetrecon red-hierarchy` first")
    return blue, red


def generate_comparison(settings: Settings) -> Tuple[str, str]:
    blue_path, red_path = _comparison_inputs(settings)
    LOGGER.info("Blue input: %s", blue_path)
    LOGGER.info("Red input: %s", red_path)
    blue = records_from_sheet(read_sheet(blue_path))
    red = records_from_sheet(read_sheet(red_path))

    blue_result = primary_driven(blue, red, "blue", "red")
    red_result = secondary_driven(blue, red, "blue", "red")

    blue_out = write_comparison(
        report_path(settings.output_dir, BLUE_COMPARISON, settings.management_area), blue_result
    )
    red_out = write_comparison(
        report_path(settings.output_dir, RED_COMPARISON, settings.management_area), red_result
    )
    return blue_out, red_out


def import_code_mapping(settings: Settings, path: str, clear_existing: bool = True) -> Tuple[UpsertCounts, str]:
    mappings, conflicts = load_mapping(read_mapping_rows(path))
    source = _source(settings, settings.mapping_profile)
    try:
        store = CodeMappingStore(source)
        store.ensure_table()
        if clear_existing:
            store.clear()
        counts = store.upsert(mappings)
        LOGGER.info("Table now holds %d mappings", store.count())
        for old_code, new_code in store.sample():
            LOGGER.info("  %s -> %s", old_code, new_code)
    finally:
        source.close()

    summary = write_mapping_summary(
        report_path(settings.output_dir, MAPPING_IMPORT, settings.management_area), mappings, conflicts
    )
    return counts, summary


def resolve_new_codes(settings: Settings, path: str) -> str:
    rows = read_sheet(path)
    if not rows:
        raise InputError(f"{path} has no data rows")
    header: List[str] = list(rows[0].keys())
    source = _source(settings, settings.red_profile)
    try:
        repo = AssetRepository(source, settings.management_area, settings.query_date())
        results = resolve_codes(rows, repo.new_asset_info, delay=settings.delay_seconds)
    finally:
        source.close()

    out = write_resolutions(
        report_path(settings.output_dir, CODE_RESOLUTION, settings.management_area), header, results
    )
    LOGGER.info("Statuses: %s", status_counts(results))
    return out
