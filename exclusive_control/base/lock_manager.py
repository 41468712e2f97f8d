import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence

from exclusive_control.base.descriptor import LockDescriptor
from exclusive_control.base.errors import DEFAULT_CONFLICT_MESSAGE, ConflictError
from exclusive_control.base.version import VersionSnapshot

logger = logging.getLogger("exclusive_control")


def collect_conflicts(
    versions: Sequence[VersionSnapshot],
    read_version: Callable[[VersionSnapshot], Optional[str]],
) -> List[VersionSnapshot]:
    """
    Evaluate the whole batch and return every stale snapshot, in input order.

    read_version returns the stored version of the row a snapshot addresses,
    or None when the row no longer exists; a missing row counts as stale.
    The stored value is compared as a string.
    """
    conflicts = []
    for version in versions:
        stored = read_version(version)
        if stored is None or str(stored) != version.version:
            logger.debug(
                "LockManager.conflict: table=%s condition=%s held=%s stored=%s",
                version.table_name,
                version.primary_key_condition,
                version.version,
                stored,
            )
            conflicts.append(version)
    return conflicts


class LockManager(ABC):
    """
    Pessimistic and optimistic locking over exclusive-control tables.

    Pessimistic: update_version() bumps the version at the start of the
    work; the storage engine holds the row until the ambient transaction
    ends.

    Optimistic: get_version() reads the version up front; later
    check_versions() or update_versions_with_check() verify that nobody
    changed it in between.

    Every method runs inside the caller's transaction. Implementations
    keep no request-scoped state between calls.

    Subclasses provide the storage primitives (_read_stored_version,
    _advance_version) and the descriptor operations; batch validation and
    conflict aggregation live here.
    """

    def __init__(self, conflict_message: str = DEFAULT_CONFLICT_MESSAGE):
        self.conflict_message = conflict_message

    # =========================================================
    # Descriptor operations
    # =========================================================

    @abstractmethod
    def get_version(self, descriptor: LockDescriptor) -> Optional[VersionSnapshot]:
        """
        Read the current version of the row. None if the row does not exist.
        """
        pass

    @abstractmethod
    def update_version(self, descriptor: LockDescriptor) -> None:
        """
        Advance the version unconditionally and hold the row until the
        ambient transaction commits or rolls back.
        """
        pass

    @abstractmethod
    def add_version(self, descriptor: LockDescriptor) -> None:
        """Create the version row for a newly created entity."""
        pass

    @abstractmethod
    def remove_version(self, descriptor: LockDescriptor) -> None:
        """Delete the version row of a deleted entity."""
        pass

    # =========================================================
    # Storage primitives used by the batch operations
    # =========================================================

    @abstractmethod
    def _read_stored_version(
        self,
        table_name: str,
        version_column_name: str,
        condition: Dict[str, Any],
        for_update: bool,
    ) -> Optional[str]:
        """
        Return the stored version of one row, or None if absent.
        for_update asks for a locking read held until the transaction ends.
        """
        pass

    @abstractmethod
    def _advance_version(
        self,
        table_name: str,
        version_column_name: str,
        condition: Dict[str, Any],
    ) -> int:
        """Write a new version for one row; return the affected row count."""
        pass

    # =========================================================
    # Batch operations
    # =========================================================

    def check_versions(self, versions: Sequence[VersionSnapshot]) -> None:
        """
        Verify that no row in the batch changed since its snapshot was taken.

        Raises:
            ConflictError: carrying every stale snapshot, never fails on the
                first one. Nothing is written either way.
        """
        if not versions:
            return
        logger.debug("LockManager.check_versions: count=%d", len(versions))
        conflicts = collect_conflicts(versions, self._reader(for_update=False))
        if conflicts:
            raise self._conflict(conflicts, "check_versions")

    def update_versions_with_check(self, versions: Sequence[VersionSnapshot]) -> None:
        """
        Verify the batch like check_versions() and, only if every row
        matches, advance the version of every row.

        The reads are locking reads, so no other writer can slip in between
        the check and the write of a row.

        Raises:
            ConflictError: no row has been updated.
        """
        if not versions:
            return
        logger.debug("LockManager.update_versions_with_check: count=%d", len(versions))
        conflicts = collect_conflicts(versions, self._reader(for_update=True))
        if conflicts:
            raise self._conflict(conflicts, "update_versions_with_check")

        for version in versions:
            self._advance_version(
                version.table_name,
                version.version_column_name,
                version.primary_key_condition,
            )
        logger.info("LockManager.update_versions_with_check done: count=%d", len(versions))

    # =========================================================
    # Internal helper methods
    # =========================================================

    def _reader(self, for_update: bool) -> Callable[[VersionSnapshot], Optional[str]]:
        def read(version: VersionSnapshot) -> Optional[str]:
            return self._read_stored_version(
                version.table_name,
                version.version_column_name,
                version.primary_key_condition,
                for_update,
            )
        return read

    def _conflict(self, conflicts: List[VersionSnapshot], operation: str) -> ConflictError:
        logger.warning(
            "LockManager.%s conflict: count=%d rows=%s",
            operation,
            len(conflicts),
            [str(v) for v in conflicts],
        )
        return ConflictError(conflicts, self.conflict_message)
