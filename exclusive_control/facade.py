"""
Exclusive control facade

Entry point for application code. A LockFacade wraps one LockManager and
forwards every call unchanged; construct it once and pass it to the code
that needs locking.

For code that cannot receive the facade explicitly, one manager can be
bound for the whole process under MANAGER_NAME (normally by
exclusive_control.bootstrap.configure at startup, before any concurrent
use). The module-level functions resolve that binding on every call and
fail with ManagerNotConfiguredError when nothing is bound.
"""

import logging
from typing import Dict, Optional, Sequence

from exclusive_control.base.descriptor import LockDescriptor
from exclusive_control.base.errors import ManagerNotConfiguredError
from exclusive_control.base.lock_manager import LockManager
from exclusive_control.base.version import VersionSnapshot

logger = logging.getLogger("exclusive_control")

MANAGER_NAME = "exclusiveControlManager"


class LockFacade:
    """Forwards each operation to the wrapped LockManager."""

    def __init__(self, manager: LockManager):
        self.manager = manager

    def get_version(self, descriptor: LockDescriptor) -> Optional[VersionSnapshot]:
        """Read the version for optimistic locking; None if the row does not exist."""
        return self.manager.get_version(descriptor)

    def check_versions(self, versions: Sequence[VersionSnapshot]) -> None:
        """Raise ConflictError if any of the rows changed (optimistic locking)."""
        self.manager.check_versions(versions)

    def update_versions_with_check(self, versions: Sequence[VersionSnapshot]) -> None:
        """Check then advance every version, all or nothing (optimistic locking)."""
        self.manager.update_versions_with_check(versions)

    def update_version(self, descriptor: LockDescriptor) -> None:
        """Advance the version and hold the row until commit/rollback (pessimistic locking)."""
        self.manager.update_version(descriptor)

    def add_version(self, descriptor: LockDescriptor) -> None:
        self.manager.add_version(descriptor)

    def remove_version(self, descriptor: LockDescriptor) -> None:
        self.manager.remove_version(descriptor)


# =========================================================
# Process-wide binding
# =========================================================

_registry: Dict[str, LockManager] = {}


def bind_manager(manager: LockManager) -> None:
    _registry[MANAGER_NAME] = manager
    logger.info("LockManager bound: name=%s type=%s", MANAGER_NAME, type(manager).__name__)


def unbind_manager() -> None:
    _registry.pop(MANAGER_NAME, None)


def get_manager() -> LockManager:
    manager = _registry.get(MANAGER_NAME)
    if manager is None:
        logger.error("LockManager not configured: name=%s", MANAGER_NAME)
        raise ManagerNotConfiguredError(MANAGER_NAME)
    return manager


def get_facade() -> LockFacade:
    """
    Get a facade over the bound manager.

    Usable as a FastAPI dependency, like get_config().
    """
    return LockFacade(get_manager())


def get_version(descriptor: LockDescriptor) -> Optional[VersionSnapshot]:
    return get_facade().get_version(descriptor)


def check_versions(versions: Sequence[VersionSnapshot]) -> None:
    get_facade().check_versions(versions)


def update_versions_with_check(versions: Sequence[VersionSnapshot]) -> None:
    get_facade().update_versions_with_check(versions)


def update_version(descriptor: LockDescriptor) -> None:
    get_facade().update_version(descriptor)


def add_version(descriptor: LockDescriptor) -> None:
    get_facade().add_version(descriptor)


def remove_version(descriptor: LockDescriptor) -> None:
    get_facade().remove_version(descriptor)
