from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import MetaData, Table, create_engine, select
from sqlalchemy.engine import Engine, Row

from .config import RepositoryConfig, load_engine_config

logger = logging.getLogger(__name__)


class RecordRepository:
    """
    Interface for loading raw records.

    Implementations hand back plain dictionaries, the same shape an upstream
    JSON API would produce, so the operators never see driver-specific row
    types.
    """

    def load(self, table: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        raise NotImplementedError


class SQLRecordRepository(RecordRepository):
    """
    Read every column of a table through SQLAlchemy reflection.

    Columns listed in ``json_columns`` hold serialized JSON documents and are
    decoded so nested paths such as ``"properties.channel"`` resolve.
    """

    def __init__(self, engine: Engine, json_columns: Sequence[str] = ()):
        self.engine = engine
        self.json_columns = tuple(json_columns)
        self._tables: Dict[str, Table] = {}

    def load(self, table: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        source = self._reflect(table)
        query = select(source)
        if limit is not None:
            query = query.limit(limit)
        with self.engine.connect() as connection:
            rows = connection.execute(query).fetchall()
        logger.debug("Loaded %d records from %s", len(rows), table)
        return [self._row_to_record(row) for row in rows]

    def _reflect(self, table: str) -> Table:
        cached = self._tables.get(table)
        if cached is None:
            cached = Table(table, MetaData(), autoload_with=self.engine)
            self._tables[table] = cached
        return cached

    def _row_to_record(self, row: Row) -> Dict[str, Any]:
        record = dict(row._mapping)
        for column in self.json_columns:
            raw = record.get(column)
            if isinstance(raw, str):
                try:
                    record[column] = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning("Column %s holds invalid JSON; keeping raw text", column)
        return record


def build_repository_from_env(config: Optional[RepositoryConfig] = None) -> Optional[RecordRepository]:
    cfg = config or load_engine_config().repository
    if cfg.database_url:
        engine = create_engine(cfg.database_url)
        return SQLRecordRepository(engine, json_columns=cfg.json_columns)
    return None
