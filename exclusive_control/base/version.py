from typing import Any, Dict, Mapping


class VersionSnapshot:
    """
    Version value observed (or held) for one row of an exclusive-control table.

    Immutable. The primary-key condition is copied at construction and
    every read returns a fresh dict. No value equality is defined: two
    snapshots are distinct objects even when they address the same row
    with the same version; use same_row() to compare row identity.
    """

    __slots__ = ("_table_name", "_version_column_name", "_version", "_primary_key_condition")

    def __init__(
        self,
        table_name: str,
        version_column_name: str,
        version: str,
        primary_key_condition: Mapping[str, Any],
    ):
        object.__setattr__(self, "_table_name", table_name)
        object.__setattr__(self, "_version_column_name", version_column_name)
        object.__setattr__(self, "_version", version)
        object.__setattr__(self, "_primary_key_condition", dict(primary_key_condition))

    @classmethod
    def from_descriptor(cls, descriptor, version: str) -> "VersionSnapshot":
        return cls(
            descriptor.table_name,
            descriptor.version_column_name,
            version,
            descriptor.condition,
        )

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def table_name(self) -> str:
        return self._table_name

    @property
    def version_column_name(self) -> str:
        return self._version_column_name

    @property
    def version(self) -> str:
        return self._version

    @property
    def primary_key_condition(self) -> Dict[str, Any]:
        return dict(self._primary_key_condition)

    def get_primary_key_condition(self) -> Dict[str, Any]:
        return dict(self._primary_key_condition)

    def same_row(self, other: "VersionSnapshot") -> bool:
        return (
            self._table_name == other._table_name
            and self._version_column_name == other._version_column_name
            and self._primary_key_condition == other._primary_key_condition
        )

    def __str__(self) -> str:
        return "table_name = [%s], version = [%s], primary_key_condition = [%s]" % (
            self._table_name,
            self._version,
            self._primary_key_condition,
        )

    def __repr__(self) -> str:
        return f"VersionSnapshot({self})"
