import pytest

from exclusive_control import facade
from exclusive_control.impl.memory_lock_manager import MemoryLockManager
from exclusive_control.impl.mysql_lock_manager import MySQLLockManager
from helpers import FakeConnection


@pytest.fixture
def memory_manager():
    return MemoryLockManager()


@pytest.fixture
def fake_conn():
    return FakeConnection()


@pytest.fixture
def mysql_manager(fake_conn):
    return MySQLLockManager(fake_conn)


@pytest.fixture(autouse=True)
def clean_binding():
    facade.unbind_manager()
    yield
    facade.unbind_manager()
