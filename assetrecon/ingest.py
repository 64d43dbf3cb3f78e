from __future__ import annotations

import logging
import re
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .errors import InputError
from .models import AssetRecord

LOGGER = logging.getLogger(__name__)

# Hierarchy export header -> AssetRecord field.
RECORD_FIELDS = {
    "Code": "code",
    "Contract_Code": "contract_code",
    "Name": "name",
    "Level": "level",
    "Asset_Type": "asset_type",
    "Category": "category",
    "Address": "address",
    "Built_Area": "built_area",
    "Leasable_Area": "leasable_area",
    "Parent_Code": "parent_code",
    "New_Code": "new_code",
    "New_Name": "new_name",
    "Old_Code": "old_code",
    "Old_Name": "old_name",
}


def read_raw_rows(path: str) -> List[List[Any]]:
    if not Path(path).exists():
        raise InputError(f"Input file not found: {path}")
    try:
        wb = load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise InputError(f"Cannot read workbook {path}: {exc}") from exc
    try:
        ws = wb.worksheets[0]
        rows = [list(row) for row in ws.iter_rows(values_only=True)]
    finally:
        wb.close()
    while rows and all(cell is None for cell in rows[-1]):
        rows.pop()
    LOGGER.info("Read %s: %d rows", path, len(rows))
    return rows


def read_sheet(path: str) -> List[Dict[str, Any]]:
    """First sheet as dicts keyed by the header row; blank rows are dropped."""
    raw = read_raw_rows(path)
    if not raw:
        return []
    header = ["" if h is None else str(h).strip() for h in raw[0]]
    out: List[Dict[str, Any]] = []
    for row in raw[1:]:
        if all(cell is None or cell == "" for cell in row):
            continue
        out.append({key: row[i] if i < len(row) else None for i, key in enumerate(header) if key})
    return out


def records_from_sheet(rows: List[Dict[str, Any]]) -> List[AssetRecord]:
    records: List[AssetRecord] = []
    for row in rows:
        fields = {RECORD_FIELDS[key]: value for key, value in row.items() if key in RECORD_FIELDS}
        records.append(AssetRecord.from_row(fields))
    return records


def find_latest_export(output_dir: str, kind: str, area: str) -> Optional[str]:
    root = Path(output_dir)
    if not root.exists():
        return None
    pattern = re.compile(rf"{re.escape(kind)}_{re.escape(area)}_\d{{4}}-\d{{2}}-\d{{2}}T\d{{2}}-\d{{2}}-\d{{2}}\.xlsx")
    candidates = [p for p in root.glob(f"{kind}_*.xlsx") if pattern.fullmatch(p.name)]
    if not candidates:
        return None
    return str(max(candidates, key=lambda p: p.stat().st_mtime))
