"""
Exclusive control exceptions

Every error raised by this package derives from ExclusiveControlError and
carries an ErrCode, so callers at a transaction boundary can classify it
without string matching. Storage errors raised by the driver are never
wrapped here.
"""

from typing import List, Optional

from exclusive_control.base.err_code import ErrCode

DEFAULT_CONFLICT_MESSAGE = (
    "The data you are trying to update has been modified by another user."
)


class ExclusiveControlError(Exception):
    """
    Base exception class for all exclusive control errors.
    """

    def __init__(
        self,
        message: str,
        err: ErrCode = ErrCode.UNKNOWN_ERROR,
        details: Optional[str] = None,
    ):
        """
        Initialize ExclusiveControlError.

        Args:
            message: Human-readable error message
            err: Error classification
            details: Additional error details (optional)
        """
        super().__init__(message)
        self.message = message
        self.err = err
        self.details = details

    def to_dict(self) -> dict:
        """Convert exception to dict for JSON response."""
        result = {
            "error": self.message,
            "code": self.err.name,
        }
        if self.details:
            result["details"] = self.details
        return result


class ConflictError(ExclusiveControlError):
    """
    Optimistic lock failure.

    Raised once per failed validation with every snapshot whose stored
    version no longer matches, in the order they were requested. The list
    is kept as given; it is never copied or filtered here.
    """

    def __init__(
        self,
        conflicting_versions: List,
        message: Optional[str] = DEFAULT_CONFLICT_MESSAGE,
        details: Optional[str] = None,
    ):
        super().__init__(
            message=message if message is not None else DEFAULT_CONFLICT_MESSAGE,
            err=ErrCode.VERSION_CONFLICT,
            details=details,
        )
        self.conflicting_versions = conflicting_versions

    def describe_rows(self) -> List[str]:
        """One line per contested row, built from the snapshot identity."""
        lines = []
        for version in self.conflicting_versions:
            condition = ", ".join(
                f"{col}={value!r}"
                for col, value in version.primary_key_condition.items()
            )
            lines.append(
                f"{version.table_name}({condition}) "
                f"{version.version_column_name}={version.version}"
            )
        return lines

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["rows"] = self.describe_rows()
        return result


class ManagerNotConfiguredError(ExclusiveControlError):
    """Raised by the facade when no LockManager has been bound."""

    def __init__(self, name: str, details: Optional[str] = None):
        super().__init__(
            message=f"LockManager is not configured: {name}",
            err=ErrCode.NOT_CONFIGURED,
            details=details,
        )
        self.name = name


class InvalidDescriptorError(ExclusiveControlError, ValueError):
    """Raised when a LockDescriptor cannot address exactly one row."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(
            message=message,
            err=ErrCode.INVALID_ARGUMENT,
            details=details,
        )


class LockTargetNotFoundError(ExclusiveControlError, LookupError):
    """
    Raised by a pessimistic update when the descriptor matches no version
    row, so no lock could be taken.
    """

    def __init__(self, table_name: str, condition: dict, details: Optional[str] = None):
        super().__init__(
            message=f"Version row not found: table={table_name} condition={condition}",
            err=ErrCode.KEY_NOT_FOUND,
            details=details,
        )
        self.table_name = table_name
        self.condition = dict(condition)
