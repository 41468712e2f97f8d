"""
Exclusive control configuration

This module provides configuration management using Pydantic Settings.
All configuration values can be set via environment variables or .env file.
"""

from typing import Literal

from pydantic_settings import BaseSettings
from pydantic import Field

from exclusive_control.base.errors import DEFAULT_CONFLICT_MESSAGE


class ExclusiveControlConfig(BaseSettings):
    """
    Exclusive control configuration

    All settings can be overridden via environment variables.
    Example: EXCLUSIVE_CONTROL_BACKEND=memory EXCLUSIVE_CONTROL_LOG_LEVEL=DEBUG
    """

    # ========== Backend ==========
    backend: Literal["mysql", "memory"] = Field(
        default="mysql",
        description="LockManager implementation to bind (mysql or memory)"
    )

    # ========== MySQL Configuration ==========
    mysql_host: str = Field(
        default="127.0.0.1",
        description="MySQL host address"
    )
    mysql_port: int = Field(
        default=33061,
        description="MySQL port"
    )
    mysql_user: str = Field(
        default="root",
        description="MySQL user"
    )
    mysql_password: str = Field(
        default="",
        description="MySQL password"
    )
    mysql_database: str = Field(
        default="rm_db",
        description="Database holding the exclusive-control tables"
    )

    # ========== Locking ==========
    initial_version: str = Field(
        default="0",
        description="Version written when a version row is added"
    )
    conflict_message: str = Field(
        default=DEFAULT_CONFLICT_MESSAGE,
        description="Message attached to optimistic lock failures"
    )

    # ========== Logging Configuration ==========
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    class Config:
        env_prefix = "EXCLUSIVE_CONTROL_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global configuration instance
config = ExclusiveControlConfig()


def get_config() -> ExclusiveControlConfig:
    """
    Get the global configuration instance.

    Returns:
        ExclusiveControlConfig: The global configuration instance
    """
    return config
