"""SQL for both asset systems.

Column aliases match :class:`~assetrecon.models.AssetRecord` field names so rows
convert with ``AssetRecord.from_row``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import DateTime, bindparam, text
from sqlalchemy.sql.elements import TextClause

from .database import DataSource
from .models import AssetRecord

LOGGER = logging.getLogger(__name__)

_ASSET_COLUMNS = """
        a.AS_CODE AS code,
        a.AS_NAME AS name,
        a.AS_LV AS level,
        a.OPERATING AS asset_type,
        a.AS_TYPE_NAME AS category,
        a.AS_ADDRESS AS address,
        COALESCE(a.AS_CONSTRUCTION_AREA, 0) AS built_area,
        COALESCE(a.AS_USABLE_AREA, 0) AS leasable_area,
        a.UP_AS_CODE AS parent_code,
        a.AS_STATE AS state,
        a.NEW_AS_CODE AS new_code,
        a.NEW_AS_NAME AS new_name,
        a.OLD_AS_CODE AS old_code,
        a.OLD_AS_NAME AS old_name"""

_ACTIVE_CONTRACTS = """
    LEFT JOIN (
        SELECT ccd.AS_CODE, c.CON_CODE
        FROM con_contracts_detail ccd
        INNER JOIN con_contracts c ON ccd.CONTRACTS_ID = c.ID
        WHERE c.U_DELETE = 1
          AND c.START_DATE < :as_of
          AND c.END_DATE > :as_of
          AND c.CON_STATE IN ('CHECKED', 'INIT', 'WORKFLOWED')
    ) c ON a.AS_CODE = c.AS_CODE"""

BLUE_TOP_SQL = f"""
    SELECT DISTINCT {_ASSET_COLUMNS},
        c.CON_CODE AS contract_code
    FROM as_asset a {_ACTIVE_CONTRACTS}
    WHERE a.OPERATING_NAME = :area
      AND a.U_DELETE = 1
      AND a.AS_STATE LIKE '%BLUE'
      AND a.AS_LV = 1
    ORDER BY a.AS_CODE
"""

BLUE_CHILDREN_SQL = f"""
    SELECT DISTINCT {_ASSET_COLUMNS},
        c.CON_CODE AS contract_code
    FROM as_asset a {_ACTIVE_CONTRACTS}
    WHERE a.OPERATING_NAME = :area
      AND a.U_DELETE = 1
      AND a.AS_STATE LIKE '%BLUE'
      AND a.UP_AS_CODE = :parent_code
    ORDER BY a.AS_CODE
"""

RED_TOP_SQL = f"""
    SELECT {_ASSET_COLUMNS}
    FROM as_asset a
    WHERE a.OPERATING_NAME = :area
      AND a.U_DELETE = 1
      AND a.AS_LV = -99
      AND a.AS_STATE IN ('CHECKED', 'INIT')
    ORDER BY a.AS_CODE
"""

RED_CHILDREN_SQL = f"""
    SELECT {_ASSET_COLUMNS}
    FROM as_asset a
    WHERE a.OPERATING_NAME = :area
      AND a.U_DELETE = 1
      AND a.AS_STATE IN ('CHECKED', 'INIT')
      AND a.UP_AS_CODE = :parent_code
    ORDER BY a.AS_CODE
"""

NEW_ASSET_SQL = """
    SELECT
        a2.AS_CODE AS new_code,
        a2.AS_NAME AS new_name,
        a2.AS_LV AS new_level,
        a2.OPERATING AS new_asset_type,
        a2.AS_USABLE_AREA AS new_leasable_area
    FROM as_asset a1
    INNER JOIN as_asset a2 ON a1.NEW_AS_CODE = a2.AS_CODE
    WHERE a1.AS_CODE = :code
      AND a1.U_DELETE = 1
      AND a2.U_DELETE = 1
"""


def _with_as_of(sql: str) -> TextClause:
    return text(sql).bindparams(bindparam("as_of", type_=DateTime()))


class AssetRepository:
    def __init__(self, source: DataSource, management_area: str, as_of: Optional[datetime] = None):
        self.source = source
        self.management_area = management_area
        self.as_of = as_of or datetime.now()

    def _records(self, statement: Union[str, TextClause], **params: Any) -> List[AssetRecord]:
        params.setdefault("area", self.management_area)
        return [AssetRecord.from_row(row) for row in self.source.query(statement, params)]

    def blue_top_assets(self) -> List[AssetRecord]:
        return self._records(_with_as_of(BLUE_TOP_SQL), as_of=self.as_of)

    def blue_children(self, parent_code: str) -> List[AssetRecord]:
        return self._records(_with_as_of(BLUE_CHILDREN_SQL), as_of=self.as_of, parent_code=parent_code)

    def red_top_assets(self) -> List[AssetRecord]:
        return self._records(RED_TOP_SQL)

    def red_children(self, parent_code: str) -> List[AssetRecord]:
        return self._records(RED_CHILDREN_SQL, parent_code=parent_code)

    def new_asset_info(self, code: str) -> Optional[Dict[str, Any]]:
        rows = self.source.query(NEW_ASSET_SQL, {"code": code})
        if not rows:
            LOGGER.info("No new asset for %s", code)
            return None
        LOGGER.info("%s -> %s", code, rows[0].get("new_code"))
        return rows[0]
