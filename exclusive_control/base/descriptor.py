import enum
import re
from typing import Any, Dict, Iterable, Tuple, Union

from exclusive_control.base.errors import InvalidDescriptorError

# Column identifier: a plain name or an Enum member whose .name is the column.
Column = Union[str, enum.Enum]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*$")


def column_name(column: Column) -> str:
    if isinstance(column, enum.Enum):
        return column.name
    return str(column)


def to_variable_name(column: Column) -> str:
    """Normalize a column identifier to the key used in conditions."""
    return column_name(column).lower()


def is_identifier(name) -> bool:
    return isinstance(name, str) and bool(_IDENTIFIER.match(name))


class LockDescriptor:
    """
    Describes which row of an exclusive-control table to lock.

    Holds the table name, its version column, the ordered primary-key
    columns and the condition (normalized column -> value) selecting one
    row. Per-entity subclasses fix the schema in __init__ and append one
    condition per primary-key column:

        class UserLock(LockDescriptor):
            class PK(enum.Enum):
                USER_ID = 1

            def __init__(self, user_id):
                super().__init__("EXCLUSIVE_USER_MST", "VERSION", list(self.PK))
                self.append_condition(self.PK.USER_ID, user_id)
    """

    def __init__(
        self,
        table_name: str = None,
        version_column_name: str = None,
        primary_key_columns: Iterable[Column] = (),
    ):
        self.table_name = table_name
        self.version_column_name = version_column_name
        self.primary_key_columns: Tuple[Column, ...] = tuple(primary_key_columns)
        self._condition: Dict[str, Any] = {}

    def set_table_name(self, table_name: str) -> None:
        self.table_name = table_name

    def set_version_column_name(self, version_column_name: str) -> None:
        self.version_column_name = version_column_name

    def set_primary_key_columns(self, *columns: Column) -> None:
        self.primary_key_columns = tuple(columns)

    def append_condition(self, column: Column, value: Any) -> "LockDescriptor":
        # not checked against primary_key_columns; see validate()
        self._condition[to_variable_name(column)] = value
        return self

    @property
    def condition(self) -> Dict[str, Any]:
        # live dict, not a copy
        return self._condition

    def get_condition(self) -> Dict[str, Any]:
        return self._condition

    def normalized_primary_key_columns(self) -> Tuple[str, ...]:
        return tuple(to_variable_name(c) for c in self.primary_key_columns)

    def validate(self) -> None:
        """
        Check that the descriptor addresses exactly one row.

        Raises:
            InvalidDescriptorError: table or version column missing, a name
                is not a plain SQL identifier, or the condition keys differ
                from the primary-key columns.
        """
        if not is_identifier(self.table_name):
            raise InvalidDescriptorError(f"invalid table name: {self.table_name!r}")
        if not is_identifier(self.version_column_name):
            raise InvalidDescriptorError(
                f"invalid version column name: {self.version_column_name!r}"
            )
        if not self.primary_key_columns:
            raise InvalidDescriptorError(
                f"no primary key columns declared: table={self.table_name}"
            )
        for column in self.primary_key_columns:
            if not is_identifier(column_name(column)):
                raise InvalidDescriptorError(
                    f"invalid primary key column: {column_name(column)!r}"
                )

        declared = self.normalized_primary_key_columns()
        if len(set(declared)) != len(declared):
            raise InvalidDescriptorError(
                f"duplicate primary key columns: table={self.table_name} columns={list(declared)}"
            )
        if set(self._condition) != set(declared):
            missing = [c for c in declared if c not in self._condition]
            extra = [c for c in self._condition if c not in declared]
            raise InvalidDescriptorError(
                f"condition does not match primary key: table={self.table_name}",
                details=f"missing={missing} unexpected={extra}",
            )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(table_name={self.table_name!r}, "
            f"version_column_name={self.version_column_name!r}, "
            f"primary_key_columns={[column_name(c) for c in self.primary_key_columns]}, "
            f"condition={self._condition!r})"
        )
