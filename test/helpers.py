"""
Exclusive control test helpers
Shared descriptors, a recording fake pymysql connection and assertion helpers.
"""
import enum
from typing import Any, Dict, List, Optional, Tuple

from exclusive_control.base.descriptor import LockDescriptor
from exclusive_control.base.errors import ConflictError


# ==================== Descriptors ====================

class ExUserMstPk(LockDescriptor):
    """Three-column key on EXCLUSIVE_USER_MST."""

    class PK(enum.Enum):
        USER_ID = 1
        PK2 = 2
        PK3 = 3

    def __init__(self, user_id, pk2, pk3):
        super().__init__()
        self.set_table_name("EXCLUSIVE_USER_MST")
        self.set_version_column_name("VERSION")
        self.set_primary_key_columns(*self.PK)
        self.append_condition(self.PK.USER_ID, user_id)
        self.append_condition(self.PK.PK2, pk2)
        self.append_condition(self.PK.PK3, pk3)


class UserPk(LockDescriptor):
    """Single-column key given as plain strings."""

    def __init__(self, user_id):
        super().__init__("user", "version", ["ID"])
        self.append_condition("ID", user_id)


# ==================== Fake pymysql connection ====================

class FakeCursor:
    def __init__(self, conn: "FakeConnection"):
        self.conn = conn
        self._result = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql: str, values=None) -> int:
        statement = " ".join(sql.split())
        values = list(values or [])
        self.conn.executed.append((statement, values))
        if self.conn.fail_with is not None:
            raise self.conn.fail_with

        tokens = statement.split()
        verb = tokens[0].upper()
        rows = self.conn.rows

        if verb == "SELECT":
            table = tokens[tokens.index("FROM") + 1]
            version_column = tokens[1]
            stored = rows.get((table, tuple(values)))
            self._result = None if stored is None else {version_column: stored}
            return 0 if stored is None else 1

        if verb == "UPDATE":
            key = (tokens[1], tuple(values))
            if key not in rows:
                return 0
            rows[key] += 1
            return 1

        if verb == "INSERT":
            key = (tokens[2], tuple(values[:-1]))
            if key in rows:
                raise self.conn.duplicate_error(key)
            rows[key] = int(values[-1])
            return 1

        if verb == "DELETE":
            key = (tokens[2], tuple(values))
            return 0 if rows.pop(key, None) is None else 1

        raise AssertionError(f"unexpected statement: {statement}")

    def fetchone(self):
        return self._result


class FakeConnection:
    """
    Stands in for a pymysql connection. Rows are keyed by
    (table, primary key values in condition order) -> integer version.
    """

    def __init__(self):
        self.rows: Dict[Tuple[str, Tuple[Any, ...]], int] = {}
        self.executed: List[Tuple[str, list]] = []
        self.commits = 0
        self.rollbacks = 0
        self.fail_with: Optional[Exception] = None

    def cursor(self):
        return FakeCursor(self)

    def get_autocommit(self):
        return False

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    @staticmethod
    def duplicate_error(key):
        import pymysql
        return pymysql.err.IntegrityError(1062, f"Duplicate entry for key {key}")

    def statements(self, verb: str) -> List[str]:
        return [s for s, _ in self.executed if s.upper().startswith(verb)]


# ==================== Recording manager ====================

class RecordingManager:
    """Captures the arguments of every LockManager call."""

    def __init__(self, version=None):
        self.calls: List[Tuple[str, Any]] = []
        self.version = version

    def get_version(self, descriptor):
        self.calls.append(("get_version", descriptor))
        return self.version

    def check_versions(self, versions):
        self.calls.append(("check_versions", versions))

    def update_versions_with_check(self, versions):
        self.calls.append(("update_versions_with_check", versions))

    def update_version(self, descriptor):
        self.calls.append(("update_version", descriptor))

    def add_version(self, descriptor):
        self.calls.append(("add_version", descriptor))

    def remove_version(self, descriptor):
        self.calls.append(("remove_version", descriptor))


# ==================== Assertion Helpers ====================

def assert_conflict(exc: ConflictError, expected: list, msg: str = ""):
    """Assert the conflict carries exactly the expected snapshots, same objects, same order."""
    got = exc.conflicting_versions
    assert len(got) == len(expected), f"{msg} | expected {len(expected)} conflicts, got {len(got)}"
    for i, (g, e) in enumerate(zip(got, expected)):
        assert g is e, f"{msg} | conflict #{i} is {g}, expected {e}"


# ==================== Test Data Constants ====================

class TestData:
    """Test data constants"""
    __test__ = False

    TABLE = "EXCLUSIVE_USER_MST"
    VERSION_COLUMN = "VERSION"
    INITIAL_VERSION = "0"
