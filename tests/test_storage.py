"""Tests for the Storage backends (in-memory and SQL)."""
import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from dialog_engine.repositories.storage import InMemoryStorage, SqlStorage


@pytest.fixture
def sqlite_storage():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    return SqlStorage(engine=engine)


@pytest.fixture(params=["memory", "sql"])
def any_storage(request, sqlite_storage):
    if request.param == "memory":
        return InMemoryStorage()
    return sqlite_storage


class TestStorageContract:
    def test_missing_keys_are_omitted(self, any_storage):
        assert any_storage.read(["nope"]) == {}

    def test_write_then_read(self, any_storage):
        document = {"DialogState": {"frames": [{"dialog_id": "mainDialog", "step_index": 1}]}}
        any_storage.write({"test/conversations/c1": document})

        assert any_storage.read(["test/conversations/c1", "other"]) == {"test/conversations/c1": document}

    def test_write_replaces_whole_document(self, any_storage):
        any_storage.write({"k": {"a": 1, "b": 2}})
        any_storage.write({"k": {"b": 3}})

        assert any_storage.read(["k"]) == {"k": {"b": 3}}

    def test_delete_ignores_unknown_keys(self, any_storage):
        any_storage.write({"k": {"a": 1}})

        any_storage.delete(["k", "unknown"])

        assert any_storage.read(["k"]) == {}

    def test_returned_documents_are_copies(self, any_storage):
        any_storage.write({"k": {"items": [1]}})

        any_storage.read(["k"])["k"]["items"].append(2)

        assert any_storage.read(["k"]) == {"k": {"items": [1]}}


class TestInMemoryStorage:
    def test_written_documents_are_copied(self):
        storage = InMemoryStorage()
        document = {"items": [1]}
        storage.write({"k": document})

        document["items"].append(2)

        assert storage.read(["k"]) == {"k": {"items": [1]}}
        assert len(storage) == 1


class TestSqlStorage:
    def test_documents_survive_a_new_storage_instance(self, sqlite_storage):
        sqlite_storage.write({"k": {"UserInfo": {"guest": {"name": "Ada"}}}})

        reopened = SqlStorage(engine=sqlite_storage.engine)

        assert reopened.read(["k"]) == {"k": {"UserInfo": {"guest": {"name": "Ada"}}}}

    def test_empty_read_and_write_are_noops(self, sqlite_storage):
        assert sqlite_storage.read([]) == {}
        sqlite_storage.write({})
