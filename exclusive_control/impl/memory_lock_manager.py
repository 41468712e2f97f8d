import logging
import threading
from typing import Any, Dict, Optional, Sequence, Tuple

from exclusive_control.base.descriptor import LockDescriptor
from exclusive_control.base.errors import DEFAULT_CONFLICT_MESSAGE, LockTargetNotFoundError
from exclusive_control.base.lock_manager import LockManager
from exclusive_control.base.version import VersionSnapshot

logger = logging.getLogger("exclusive_control")

RowKey = Tuple[str, str, Tuple[Tuple[str, Any], ...]]


class MemoryLockManager(LockManager):
    """
    In-process LockManager.

    Version rows live in a dict; one re-entrant mutex serializes every
    operation, so a validate-then-write batch is atomic across threads.
    There is no transaction to hold a pessimistic lock for, so
    update_version() only advances the version.
    """

    def __init__(
        self,
        initial_version: str = "0",
        conflict_message: str = DEFAULT_CONFLICT_MESSAGE,
    ):
        super().__init__(conflict_message=conflict_message)
        self.initial_version = initial_version
        # (table, version column, condition items) -> version
        self._rows: Dict[RowKey, int] = {}
        self._mutex = threading.RLock()

    @staticmethod
    def _row_key(table_name: str, version_column_name: str, condition: Dict[str, Any]) -> RowKey:
        return (table_name.lower(), version_column_name.lower(), tuple(sorted(condition.items())))

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
            logger.debug(
                "MemoryLockManager.get_version: no row table=%s condition=%s",
                descriptor.table_name, descriptor.condition
            )
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
                "MemoryLockManager.update_version not found: table=%s condition=%s",
                descriptor.table_name, descriptor.condition
            )
            raise LockTargetNotFoundError(descriptor.table_name, descriptor.condition)

    def add_version(self, descriptor: LockDescriptor) -> None:
        descriptor.validate()
        key = self._row_key(
            descriptor.table_name, descriptor.version_column_name, descriptor.condition
        )
        with self._mutex:
            # primary-key semantics: a second add fails
            if key in self._rows:
                raise KeyError(f"version row already exists: {key}")
            self._rows[key] = int(self.initial_version)
        logger.info(
            "MemoryLockManager.add_version: table=%s condition=%s version=%s",
            descriptor.table_name, descriptor.condition, self.initial_version
        )

    def remove_version(self, descriptor: LockDescriptor) -> None:
        descriptor.validate()
        key = self._row_key(
            descriptor.table_name, descriptor.version_column_name, descriptor.condition
        )
        with self._mutex:
            removed = self._rows.pop(key, None)
        logger.info(
            "MemoryLockManager.remove_version: table=%s condition=%s existed=%s",
            descriptor.table_name, descriptor.condition, removed is not None
        )

    # =========================================================
    # Batch operations
    # =========================================================

    def check_versions(self, versions: Sequence[VersionSnapshot]) -> None:
        with self._mutex:
            super().check_versions(versions)

    def update_versions_with_check(self, versions: Sequence[VersionSnapshot]) -> None:
        with self._mutex:
            super().update_versions_with_check(versions)

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
        key = self._row_key(table_name, version_column_name, condition)
        with self._mutex:
            stored = self._rows.get(key)
        return None if stored is None else str(stored)

    def _advance_version(
        self,
        table_name: str,
        version_column_name: str,
        condition: Dict[str, Any],
    ) -> int:
        key = self._row_key(table_name, version_column_name, condition)
        with self._mutex:
            if key not in self._rows:
                return 0
            self._rows[key] += 1
            logger.debug(
                "MemoryLockManager.advance: table=%s condition=%s version=%s",
                table_name, condition, self._rows[key]
            )
        return 1
