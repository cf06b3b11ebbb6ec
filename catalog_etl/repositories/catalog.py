"""
Catalog store: all-or-nothing execution of planned writes
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from catalog_etl.core.database import DatabaseSessionManager, db_manager
from catalog_etl.core.exceptions import DatabaseError
from catalog_etl.core.logging import log
from catalog_etl.services.persistence_planner import WriteOperation


class CatalogStore:
    """
    Relational store behind the importer.
    Every write is insert-if-absent, so the caller may re-issue a failed batch.
    """

    def __init__(self, manager: Optional[DatabaseSessionManager] = None):
        self.manager = manager or db_manager

    async def _execute(self, operations: List[WriteOperation]) -> None:
        dialect_name = self.manager.dialect_name
        async with self.manager.transaction() as session:
            for operation in operations:
                await session.execute(operation.to_statement(dialect_name))

    async def execute(self, operations: List[WriteOperation]) -> None:
        """Apply the writes in one transaction; any failure rolls back all of them"""
        if not operations:
            return

        try:
            await self._execute(operations)
        except SQLAlchemyError as e:
            log.error("Batch write failed", writes=len(operations), error=str(e))
            raise DatabaseError(f"Batch write failed: {e.__class__.__name__}", writes=len(operations))

        log.debug("Batch write committed", writes=len(operations))

    async def query_one(self, sql: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """Run a read query and return its first row as a dict"""
        try:
            async with self.manager.session() as session:
                result = await session.execute(text(sql), params or {})
                row = result.mappings().first()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Query failed: {e.__class__.__name__}")
        return dict(row) if row else None
