"""
Wiring for applications: logging setup, LockManager construction from
configuration, and binding for the facade.
"""

import logging
from typing import Optional

import pymysql

from exclusive_control.base.lock_manager import LockManager
from exclusive_control.config import ExclusiveControlConfig, get_config
from exclusive_control.facade import LockFacade, bind_manager
from exclusive_control.impl.memory_lock_manager import MemoryLockManager
from exclusive_control.impl.mysql_lock_manager import MySQLLockManager

logger = logging.getLogger("exclusive_control")


def setup_logging(config: ExclusiveControlConfig) -> None:
    logging.basicConfig(
        level=config.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def new_conn(config: ExclusiveControlConfig) -> pymysql.connections.Connection:
    """Open a connection whose transactions are controlled by the caller."""
    return pymysql.connect(
        host=config.mysql_host,
        port=config.mysql_port,
        user=config.mysql_user,
        password=config.mysql_password,
        database=config.mysql_database,
        autocommit=False,
        cursorclass=pymysql.cursors.DictCursor,
    )


def build_manager(
    config: ExclusiveControlConfig,
    conn: Optional[pymysql.connections.Connection] = None,
) -> LockManager:
    if config.backend == "memory":
        manager = MemoryLockManager(
            initial_version=config.initial_version,
            conflict_message=config.conflict_message,
        )
    else:
        if conn is None:
            conn = new_conn(config)
        manager = MySQLLockManager(
            conn,
            initial_version=config.initial_version,
            conflict_message=config.conflict_message,
        )
    logger.info(
        "LockManager built: backend=%s type=%s",
        config.backend,
        type(manager).__name__,
    )
    return manager


def configure(
    config: Optional[ExclusiveControlConfig] = None,
    conn: Optional[pymysql.connections.Connection] = None,
) -> LockFacade:
    """
    Set up logging, build the configured manager and bind it for the
    module-level facade functions. Returns a facade over the same manager
    for callers that pass it explicitly.

    Call once at startup, before any concurrent use.
    """
    if config is None:
        config = get_config()
    setup_logging(config)
    manager = build_manager(config, conn)
    bind_manager(manager)
    return LockFacade(manager)
