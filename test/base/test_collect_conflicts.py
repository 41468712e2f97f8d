import pytest

from exclusive_control.base.errors import ConflictError
from exclusive_control.base.lock_manager import LockManager, collect_conflicts
from exclusive_control.base.version import VersionSnapshot
from helpers import assert_conflict


def snapshot(id_, version):
    return VersionSnapshot("T", "V", version, {"id": id_})


class DictLockManager(LockManager):
    """Minimal manager over a dict to exercise the base batch operations."""

    def __init__(self, stored):
        super().__init__(conflict_message="stale")
        self.stored = stored
        self.reads = []
        self.writes = []

    def get_version(self, descriptor):
        raise NotImplementedError

    def update_version(self, descriptor):
        raise NotImplementedError

    def add_version(self, descriptor):
        raise NotImplementedError

    def remove_version(self, descriptor):
        raise NotImplementedError

    def _read_stored_version(self, table_name, version_column_name, condition, for_update):
        self.reads.append((condition["id"], for_update))
        value = self.stored.get(condition["id"])
        return None if value is None else str(value)

    def _advance_version(self, table_name, version_column_name, condition):
        self.writes.append(condition["id"])
        self.stored[condition["id"]] += 1
        return 1


def test_collect_conflicts_evaluates_whole_batch_in_order():
    batch = [snapshot("1", "0"), snapshot("2", "5"), snapshot("3", "0")]
    stored = {"1": "1", "2": "5", "3": "9"}
    seen = []

    def read(v):
        seen.append(v)
        return stored[v.primary_key_condition["id"]]

    conflicts = collect_conflicts(batch, read)
    assert seen == batch
    assert conflicts == [batch[0], batch[2]]
    assert conflicts[0] is batch[0] and conflicts[1] is batch[2]


def test_collect_conflicts_treats_missing_row_as_stale():
    batch = [snapshot("gone", "0")]
    assert collect_conflicts(batch, lambda v: None) == batch


def test_collect_conflicts_compares_as_string():
    assert collect_conflicts([snapshot("1", "3")], lambda v: 3) == []


def test_check_versions_aggregates_first_and_third():
    manager = DictLockManager({"1": 1, "2": 0, "3": 4})
    batch = [snapshot("1", "0"), snapshot("2", "0"), snapshot("3", "0")]
    with pytest.raises(ConflictError) as ei:
        manager.check_versions(batch)
    assert_conflict(ei.value, [batch[0], batch[2]])
    assert ei.value.message == "stale"
    assert manager.reads == [("1", False), ("2", False), ("3", False)]
    assert manager.writes == []


def test_check_versions_all_match_is_pure_read():
    manager = DictLockManager({"1": 2, "2": 0})
    manager.check_versions([snapshot("1", "2"), snapshot("2", "0")])
    assert manager.writes == []
    assert manager.stored == {"1": 2, "2": 0}


def test_empty_batch_reads_nothing():
    manager = DictLockManager({})
    manager.check_versions([])
    manager.update_versions_with_check([])
    assert manager.reads == []
    assert manager.writes == []


def test_update_with_check_is_all_or_nothing():
    manager = DictLockManager({"1": 0, "2": 3})
    batch = [snapshot("1", "0"), snapshot("2", "0")]
    with pytest.raises(ConflictError) as ei:
        manager.update_versions_with_check(batch)
    assert_conflict(ei.value, [batch[1]])
    assert manager.writes == []
    assert manager.stored == {"1": 0, "2": 3}
    assert all(for_update for _, for_update in manager.reads)


def test_update_with_check_advances_every_row():
    manager = DictLockManager({"1": 0, "2": 3})
    manager.update_versions_with_check([snapshot("1", "0"), snapshot("2", "3")])
    assert manager.writes == ["1", "2"]
    assert manager.stored == {"1": 1, "2": 4}
