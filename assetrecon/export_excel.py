from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Collection, Iterable, List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from .models import AssetRecord, CodeMapping, ComparisonResult, HierarchyRow, MappingConflict, Resolution

LOGGER = logging.getLogger(__name__)

HIERARCHY_HEADERS = [
    "Code", "Contract_Code", "Name", "Level", "Asset_Type", "Category", "Address",
    "Built_Area", "Leasable_Area", "Parent_Code", "Child_Codes",
    "New_Code", "New_Name", "Old_Code", "Old_Name",
]
HIERARCHY_WIDTHS = [20, 20, 25, 10, 15, 20, 30, 12, 12, 20, 30, 20, 25, 20, 25]

SIDE_FIELDS = ["Code", "Name", "Level", "Built_Area", "Leasable_Area", "Category"]
SIDE_WIDTHS = [20, 25, 10, 12, 12, 15]

RESOLUTION_HEADERS = ["New_Code", "New_Name", "New_Level", "New_Asset_Type", "New_Leasable_Area", "Status"]

MAPPING_HEADERS = ["Row", "Old_Code", "New_Code", "Note"]


def report_path(output_dir: str, kind: str, area: str, now: Optional[datetime] = None) -> str:
    root = Path(output_dir)
    if not root.exists():
        root.mkdir(parents=True, exist_ok=True)
        LOGGER.info("Created output directory %s", root)
    stamp = (now or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S")
    return str(root / f"{kind}_{area}_{stamp}.xlsx")


def _format(
    ws: Worksheet,
    headers: Sequence[str],
    widths: Optional[Sequence[int]] = None,
    wrap_cols: Collection[str] = (),
) -> None:
    ws.freeze_panes = "A2"
    bold = Font(bold=True)
    for idx, header in enumerate(headers, start=1):
        ws.cell(row=1, column=idx).font = bold
        width = widths[idx - 1] if widths and idx <= len(widths) else 15
        ws.column_dimensions[get_column_letter(idx)].width = width
        if header in wrap_cols:
            for row in ws.iter_rows(min_row=2, min_col=idx, max_col=idx):
                row[0].alignment = Alignment(wrap_text=True, vertical="top")


def write_sheet(
    path: str,
    headers: Sequence[str],
    rows: Iterable[Sequence[Any]],
    widths: Optional[Sequence[int]] = None,
    title: str = "Sheet1",
    wrap_cols: Collection[str] = (),
) -> str:
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]
    ws.append(list(headers))
    count = 0
    for row in rows:
        ws.append(list(row))
        count += 1
    _format(ws, headers, widths, wrap_cols)
    wb.save(path)
    LOGGER.info("Wrote %s (%d rows)", path, count)
    return path


def _hierarchy_values(row: HierarchyRow) -> List[Any]:
    rec = row.record
    return [
        rec.code, rec.contract_code, rec.name, rec.level, rec.asset_type, rec.category, rec.address,
        rec.built_area, rec.leasable_area, row.parent_code, row.child_code_list,
        rec.new_code, rec.new_name, rec.old_code, rec.old_name,
    ]


def write_hierarchy(path: str, rows: Sequence[HierarchyRow], title: str = "Hierarchy") -> str:
    return write_sheet(
        path, HIERARCHY_HEADERS, (_hierarchy_values(r) for r in rows), HIERARCHY_WIDTHS, title,
        wrap_cols={"Child_Codes"},
    )


def _side(record: Optional[AssetRecord]) -> List[Any]:
    if record is None:
        return [""] * len(SIDE_FIELDS)
    return [record.code, record.name, record.level, record.built_area, record.leasable_area, record.category]


def comparison_headers(first: str, second: str) -> List[str]:
    return (
        [f"{first.title()}_{name}" for name in SIDE_FIELDS]
        + [f"{second.title()}_{name}" for name in SIDE_FIELDS]
        + ["Match_Status", "Match_Method", "Closest_Name"]
    )


def write_comparison(path: str, result: ComparisonResult, primary_first: bool = True) -> str:
    if primary_first:
        first, second = result.primary_system, result.secondary_system
    else:
        first, second = result.secondary_system, result.primary_system
    headers = comparison_headers(first, second)

    def values():
        for row in result.rows:
            left, right = (row.primary, row.secondary) if primary_first else (row.secondary, row.primary)
            yield _side(left) + _side(right) + [row.match_status, row.match_method, row.closest_name]

    widths = SIDE_WIDTHS + SIDE_WIDTHS + [12, 12, 25]
    write_sheet(path, headers, values(), widths, f"{first.title()} comparison")
    LOGGER.info(
        "Comparison %s: matched=%d unmatched=%d total=%d",
        path, result.matched_count, result.unmatched_count, result.total,
    )
    return path


def write_mapping_summary(
    path: str, mappings: Sequence[CodeMapping], conflicts: Sequence[MappingConflict]
) -> str:
    superseded = {c.old_code: c for c in conflicts}

    def values():
        for m in mappings:
            conflict = superseded.get(m.old_code)
            note = ""
            if conflict is not None:
                note = f"replaces row {conflict.first_row} ({conflict.first_new_code})"
            yield [m.row, m.old_code, m.new_code, note]

    return write_sheet(path, MAPPING_HEADERS, values(), [8, 25, 30, 40], "Code mapping")


def write_resolutions(path: str, source_header: Sequence[str], results: Sequence[Resolution]) -> str:
    """Copy the input columns and append the new asset columns and the status."""
    headers = list(source_header) + RESOLUTION_HEADERS

    def values():
        for r in results:
            yield [r.source.get(key, "") for key in source_header] + [
                r.new_code, r.new_name, r.new_level, r.new_asset_type, r.new_leasable_area, r.status,
            ]

    return write_sheet(path, headers, values(), [15] * len(headers), "Resolution")
