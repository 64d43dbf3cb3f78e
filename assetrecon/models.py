from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

MATCHED = "matched"
UNMATCHED = "unmatched"

METHOD_CODE = "code"
METHOD_NAME = "name"
METHOD_NONE = "none"


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _number(value: Any) -> float:
    if value is None or value == "":
        return 0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


def _level(value: Any) -> Any:
    if value is None or value == "":
        return ""
    try:
        return int(value)
    except (TypeError, ValueError):
        return value


@dataclass
class AssetRecord:
    code: str
    name: str
    level: Any = ""
    asset_type: str = ""
    category: str = ""
    address: str = ""
    built_area: float = 0
    leasable_area: float = 0
    parent_code: str = ""
    old_code: str = ""
    new_code: str = ""
    old_name: str = ""
    new_name: str = ""
    contract_code: str = ""
    state: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "AssetRecord":
        """Build a record from a query row or a spreadsheet row keyed by field name."""
        return cls(
            code=_text(row.get("code")),
            name=_text(row.get("name")),
            level=_level(row.get("level")),
            asset_type=_text(row.get("asset_type")),
            category=_text(row.get("category")),
            address=_text(row.get("address")),
            built_area=_number(row.get("built_area")),
            leasable_area=_number(row.get("leasable_area")),
            parent_code=_text(row.get("parent_code")),
            old_code=_text(row.get("old_code")),
            new_code=_text(row.get("new_code")),
            old_name=_text(row.get("old_name")),
            new_name=_text(row.get("new_name")),
            contract_code=_text(row.get("contract_code")),
            state=_text(row.get("state")),
        )


@dataclass
class HierarchyRow:
    record: AssetRecord
    parent_code: str = ""
    child_codes: List[str] = field(default_factory=list)

    @property
    def child_code_list(self) -> str:
        return "\n".join(self.child_codes)


@dataclass
class CodeMapping:
    old_code: str
    new_code: str
    row: int = 0
    id: str = ""


@dataclass
class MappingConflict:
    old_code: str
    first_row: int
    first_new_code: str
    second_row: int
    second_new_code: str


@dataclass
class UpsertCounts:
    inserted: int = 0
    updated: int = 0


@dataclass
class ComparisonRow:
    primary: Optional[AssetRecord]
    secondary: Optional[AssetRecord]
    match_status: str
    match_method: str = METHOD_NONE
    closest_name: str = ""


@dataclass
class ComparisonResult:
    primary_system: str
    secondary_system: str
    rows: List[ComparisonRow]
    used_secondary: FrozenSet[str] = frozenset()

    @property
    def matched_count(self) -> int:
        return sum(1 for row in self.rows if row.match_status == MATCHED)

    @property
    def unmatched_count(self) -> int:
        return sum(1 for row in self.rows if row.match_status == UNMATCHED)

    @property
    def total(self) -> int:
        return len(self.rows)


@dataclass
class Resolution:
    source: Dict[str, Any]
    original_code: str
    status: str
    new_code: str = ""
    new_name: str = ""
    new_level: Any = ""
    new_asset_type: str = ""
    new_leasable_area: Any = ""


Config = Dict[str, Any]
