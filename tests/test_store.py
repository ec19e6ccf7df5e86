"""Tests for batch persistence and user queries."""

import json
import sqlite3
from contextlib import contextmanager

import pytest

from csvusers.errors import InvalidRequest, PersistenceFailure
from csvusers.users import (
    clear_users,
    delete_user,
    get_user,
    insert_users,
    list_users,
    to_persistable,
    update_user,
)
from csvusers.users.store import chunked


def make_record(i: int, age=30, **extra) -> dict:
    record = {"name": {"firstName": f"First{i}", "lastName": f"Last{i}"}, "age": age}
    record.update(extra)
    return record


def count_users(service) -> int:
    with service.transaction():
        rows = service.execute("SELECT COUNT(*) AS cnt FROM users")
    return rows[0]["cnt"]


class TestToPersistable:
    def test_full_record(self):
        record = {
            "name": {"firstName": "Jane", "lastName": "Doe"},
            "age": 30,
            "address": {"city": "Boston", "zip": "02101"},
            "gender": "female",
            "job": {"title": "Engineer"},
        }
        user = to_persistable(record)
        assert user.name == "Jane Doe"
        assert user.age == 30
        assert json.loads(user.address) == {"city": "Boston", "zip": "02101"}
        assert json.loads(user.additional_info) == {"gender": "female", "job": {"title": "Engineer"}}

    def test_minimal_record(self):
        user = to_persistable({"name": {"firstName": "Jane", "lastName": "Doe"}, "age": 30})
        assert user.address is None
        assert user.additional_info is None

    def test_name_trimmed_when_part_missing(self):
        assert to_persistable({"name": {"firstName": "", "lastName": "Doe"}}).name == "Doe"
        assert to_persistable({"name": {"firstName": "Jane"}}).name == "Jane"
        assert to_persistable({}).name == ""

    @pytest.mark.parametrize(
        "age, expected",
        [(None, 0), ("unknown", 0), (41, 41), (41.9, 41), (-3, -3)],
    )
    def test_age_defaults_to_zero(self, age, expected):
        assert to_persistable(make_record(1, age=age)).age == expected

    def test_empty_address_dropped(self):
        assert to_persistable(make_record(1, address="")).address is None

    def test_serialization_is_compact(self):
        user = to_persistable(make_record(1, address={"city": "Boston"}))
        assert user.address == '{"city":"Boston"}'


class TestChunked:
    def test_last_chunk_shorter(self):
        chunks = list(chunked(list(range(7)), 3))
        assert chunks == [[0, 1, 2], [3, 4, 5], [6]]

    def test_empty(self):
        assert list(chunked([], 3)) == []


class TestInsertUsers:
    def test_insert_and_read_back(self, users_db):
        records = [make_record(1, address={"city": "Boston"}, gender="f"), make_record(2)]
        assert insert_users(users_db, records, chunk_size=10) == 2

        page = list_users(users_db, limit=10, offset=0)
        assert page.total == 2
        first = page.records[0]
        assert first["name"] == "First1 Last1"
        assert first["address"] == {"city": "Boston"}
        assert first["additional_info"] == {"gender": "f"}
        assert first["created_at"] is not None
        assert page.records[1]["address"] is None

    def test_empty_input(self, users_db):
        assert insert_users(users_db, []) == 0

    def test_invalid_chunk_size(self, users_db):
        with pytest.raises(InvalidRequest):
            insert_users(users_db, [make_record(1)], chunk_size=0)

    def test_chunks_share_one_transaction(self, users_db, monkeypatch):
        records = [make_record(i) for i in range(2500)]
        transactions = []
        chunk_sizes = []
        progress = []

        original_transaction = users_db.transaction
        original_batch_insert = users_db.batch_insert

        @contextmanager
        def counting_transaction():
            transactions.append(1)
            with original_transaction():
                yield

        def spy_batch_insert(table, columns, rows):
            chunk_sizes.append(len(rows))
            return original_batch_insert(table, columns, rows)

        monkeypatch.setattr(users_db, "transaction", counting_transaction)
        monkeypatch.setattr(users_db, "batch_insert", spy_batch_insert)

        inserted = insert_users(
            users_db, records, chunk_size=1000, on_progress=lambda *args: progress.append(args)
        )

        assert inserted == 2500
        assert chunk_sizes == [1000, 1000, 500]
        assert len(transactions) == 1
        assert progress == [(1, 3, 1000), (2, 3, 2000), (3, 3, 2500)]
        monkeypatch.undo()
        assert count_users(users_db) == 2500

    def test_failure_in_last_chunk_rolls_back_everything(self, users_db, monkeypatch):
        records = [make_record(i) for i in range(2500)]
        calls = []
        original_batch_insert = users_db.batch_insert

        def failing_batch_insert(table, columns, rows):
            calls.append(len(rows))
            if len(calls) == 3:
                raise sqlite3.IntegrityError("simulated write failure")
            return original_batch_insert(table, columns, rows)

        monkeypatch.setattr(users_db, "batch_insert", failing_batch_insert)

        with pytest.raises(PersistenceFailure) as exc_info:
            insert_users(users_db, records, chunk_size=1000)

        assert exc_info.value.chunk_number == 3
        assert exc_info.value.category == "PersistenceFailure"
        assert isinstance(exc_info.value.__cause__, sqlite3.IntegrityError)
        assert "simulated write failure" in str(exc_info.value)
        assert count_users(users_db) == 0


class TestQueries:
    def test_pagination(self, users_db):
        insert_users(users_db, [make_record(i) for i in range(1, 6)])
        page = list_users(users_db, limit=2, offset=2)
        assert page.total == 5
        assert [r["name"] for r in page.records] == ["First3 Last3", "First4 Last4"]

    @pytest.mark.parametrize("limit, offset", [(0, 0), (1001, 0), (10, -1)])
    def test_invalid_pagination(self, users_db, limit, offset):
        with pytest.raises(InvalidRequest):
            list_users(users_db, limit=limit, offset=offset)

    def test_get_user(self, users_db):
        insert_users(users_db, [make_record(1)])
        user_id = list_users(users_db).records[0]["id"]
        assert get_user(users_db, user_id)["name"] == "First1 Last1"
        assert get_user(users_db, user_id + 100) is None

    def test_invalid_user_id(self, users_db):
        with pytest.raises(InvalidRequest, match="Invalid user ID"):
            get_user(users_db, 0)

    def test_update_user(self, users_db):
        insert_users(users_db, [make_record(1)])
        user_id = list_users(users_db).records[0]["id"]
        updated = update_user(
            users_db,
            user_id,
            {"name": {"firstName": "New", "lastName": "Name"}, "age": 50, "address": {"city": "Reno"}},
        )
        assert updated["name"] == "New Name"
        assert updated["age"] == 50
        assert updated["address"] == {"city": "Reno"}
        assert update_user(users_db, user_id + 100, make_record(2)) is None

    def test_delete_user(self, users_db):
        insert_users(users_db, [make_record(1), make_record(2)])
        user_id = list_users(users_db).records[0]["id"]
        assert delete_user(users_db, user_id) is True
        assert delete_user(users_db, user_id) is False
        assert count_users(users_db) == 1

    def test_clear_users(self, users_db):
        insert_users(users_db, [make_record(i) for i in range(3)])
        assert clear_users(users_db) == 3
        assert count_users(users_db) == 0
        assert clear_users(users_db) == 0
