from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.base import Executable

from .errors import ConfigError

LOGGER = logging.getLogger(__name__)

Statement = Union[str, Executable]


def build_url(profile: Mapping[str, Any]) -> Union[str, URL]:
    if profile.get("url"):
        return str(profile["url"])
    missing = [key for key in ("host", "user", "database") if not profile.get(key)]
    if missing:
        raise ConfigError(f"Data-source profile is missing: {', '.join(missing)}")
    driver = profile.get("driver", "mysql+pymysql")
    query = {"charset": profile.get("charset", "utf8mb4")} if driver.startswith("mysql") else {}
    return URL.create(
        driver,
        username=profile["user"],
        password=profile.get("password"),
        host=profile["host"],
        port=int(profile["port"]) if profile.get("port") else None,
        database=profile["database"],
        query=query,
    )


class DataSource:
    """One held connection against a configured data-source profile.

    Queries run sequentially on the same connection; callers close it in a
    ``finally`` block or use the instance as a context manager.
    """

    def __init__(self, profile: Mapping[str, Any], name: Optional[str] = None):
        self.profile = dict(profile)
        self.name = name or self.profile.get("name") or "data source"
        self.engine: Optional[Engine] = None
        self.connection: Optional[Connection] = None

    def connect(self) -> Connection:
        if self.connection is None:
            self.engine = create_engine(build_url(self.profile), pool_pre_ping=True)
            self.connection = self.engine.connect()
            LOGGER.info("Connected to %s", self.name)
        return self.connection

    @staticmethod
    def _statement(statement: Statement) -> Executable:
        return text(statement) if isinstance(statement, str) else statement

    def _run(self, statement: Statement, params: Optional[Mapping[str, Any]]):
        conn = self.connect()
        try:
            return conn.execute(self._statement(statement), dict(params or {}))
        except SQLAlchemyError:
            # Leaves the connection usable (and able to reconnect) for the next statement.
            conn.rollback()
            raise

    def query(self, statement: Statement, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        result = self._run(statement, params)
        rows = [dict(row._mapping) for row in result]
        LOGGER.debug("Query returned %d rows", len(rows))
        return rows

    def execute(self, statement: Statement, params: Optional[Mapping[str, Any]] = None) -> int:
        result = self._run(statement, params)
        self.connection.commit()
        return result.rowcount

    def close(self) -> None:
        if self.connection is not None:
            self.connection.close()
            self.connection = None
            LOGGER.info("Closed connection to %s", self.name)
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None

    def __enter__(self) -> "DataSource":
        self.connect()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
