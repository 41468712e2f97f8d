import logging
from typing import Any, Dict, List, Optional, Tuple

import pymysql

from exclusive_control.base.descriptor import LockDescriptor, is_identifier
from exclusive_control.base.errors import (
    DEFAULT_CONFLICT_MESSAGE,
    InvalidDescriptorError,
    LockTargetNotFoundError,
)
from exclusive_control.base.lock_manager import LockManager
from exclusive_control.base.version import VersionSnapshot

logger = logging.getLogger("exclusive_control")


class MySQLLockManager(LockManager):
    def __init__(
        self,
        conn: pymysql.connections.Connection,
        initial_version: str = "0",
        conflict_message: str = DEFAULT_CONFLICT_MESSAGE,
    ):
        """
        conn             : MySQL connection owned by the caller; its current
                           transaction is the ambient transaction. This class
                           never commits or rolls back.
        initial_version  : version written by add_version
        conflict_message : message attached to every ConflictError

        The version column is an integer advanced by one on every write.
        """
        super().__init__(conflict_message=conflict_message)
        self.conn = conn
        self.initial_version = initial_version

        logger.info(
            "MySQLLockManager initialized: initial_version=%s autocommit=%s",
            initial_version,
            conn.get_autocommit(),
        )

    # =========================================================
    # SQL helpers
    # =========================================================

    @staticmethod
    def _where(condition: Dict[str, Any]) -> Tuple[str, List[Any]]:
        for col in condition:
            if not is_identifier(col):
                raise InvalidDescriptorError(f"invalid primary key column: {col!r}")
        clause = " AND ".join(f"{col}=%s" for col in condition)
        return clause, list(condition.values())

    @staticmethod
    def _check_names(table_name: str, version_column_name: str) -> None:
        if not is_identifier(table_name):
            raise InvalidDescriptorError(f"invalid table name: {table_name!r}")
        if not is_identifier(version_column_name):
            raise InvalidDescriptorError(
                f"invalid version column name: {version_column_name!r}"
            )

    @staticmethod
    def _value(row, column: str):
        # DictCursor rows are dicts, default cursor rows are tuples
        if isinstance(row, dict):
            return row[column]
        return row[0]

    # =========================================================
    # Descriptor operations
    # =========================================================

    def get_version(self, descriptor: LockDescriptor) -> Optional[VersionSnapshot]:
        descriptor.validate()
        stored = self._read_stored_version(
            descriptor.table_name,
            descriptor.version_column_name,
            descriptor.condition,
            for_update=False,
        )
        if stored is None:
            return None
        return VersionSnapshot.from_descriptor(descriptor, stored)

    def update_version(self, descriptor: LockDescriptor) -> None:
        descriptor.validate()
        count = self._advance_version(
            descriptor.table_name,
            descriptor.version_column_name,
            descriptor.condition,
        )
        if count == 0:
            logger.warning(
                "MySQLLockManager.update_version not found: table=%s condition=%s",
                descriptor.table_name, descriptor.condition
            )
            raise LockTargetNotFoundError(descriptor.table_name, descriptor.condition)
        logger.info(
            "MySQLLockManager.update_version locked: table=%s condition=%s",
            descriptor.table_name, descriptor.condition
        )

    def add_version(self, descriptor: LockDescriptor) -> None:
        descriptor.validate()
        condition = descriptor.condition
        columns = list(condition.keys()) + [descriptor.version_column_name]
        column_clause = ", ".join(columns)
        placeholders = ", ".join(["%s"] * len(columns))

        sql = f"""
            INSERT INTO {descriptor.table_name} ({column_clause})
            VALUES ({placeholders})
        """
        values = list(condition.values()) + [self.initial_version]

        logger.debug("Insert SQL: %s values=%s", sql, values)
        with self.conn.cursor() as cursor:
            cursor.execute(sql, values)

        logger.info(
            "MySQLLockManager.add_version: table=%s condition=%s version=%s",
            descriptor.table_name, condition, self.initial_version
        )

    def remove_version(self, descriptor: LockDescriptor) -> None:
        descriptor.validate()
        where, values = self._where(descriptor.condition)

        sql = f"""
            DELETE FROM {descriptor.table_name}
            WHERE {where}
        """

        logger.debug("Delete SQL: %s values=%s", sql, values)
        with self.conn.cursor() as cursor:
            count = cursor.execute(sql, values)

        logger.info(
            "MySQLLockManager.remove_version: table=%s condition=%s count=%s",
            descriptor.table_name, descriptor.condition, count
        )

    # =========================================================
    # Storage primitives
    # =========================================================

    def _read_stored_version(
        self,
        table_name: str,
        version_column_name: str,
        condition: Dict[str, Any],
        for_update: bool,
    ) -> Optional[str]:
        self._check_names(table_name, version_column_name)
        where, values = self._where(condition)

        sql = f"""
            SELECT {version_column_name}
            FROM {table_name}
            WHERE {where}
        """
        if for_update:
            sql += "FOR UPDATE"

        logger.debug("Select SQL: %s values=%s", sql, values)
        with self.conn.cursor() as cursor:
            cursor.execute(sql, values)
            row = cursor.fetchone()

        if row is None:
            logger.debug(
                "MySQLLockManager.read: no row table=%s condition=%s",
                table_name, condition
            )
            return None
        return str(self._value(row, version_column_name))

    def _advance_version(
        self,
        table_name: str,
        version_column_name: str,
        condition: Dict[str, Any],
    ) -> int:
        self._check_names(table_name, version_column_name)
        where, values = self._where(condition)

        sql = f"""
            UPDATE {table_name}
            SET {version_column_name} = {version_column_name} + 1
            WHERE {where}
        """

        logger.debug("Update SQL: %s values=%s", sql, values)
        with self.conn.cursor() as cursor:
            return cursor.execute(sql, values)
