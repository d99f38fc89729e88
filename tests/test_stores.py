from unittest.mock import MagicMock, patch

import pytest
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import ServerSelectionTimeoutError

from database import MongoDatabase
from errors import StoreError
from stores import (
    STATS_ID,
    InMemoryProblemStore,
    InMemoryStatsStore,
    MongoProblemStore,
    MongoStatsStore,
)


@pytest.fixture
def db():
    return MagicMock()


@pytest.fixture
def coll(db):
    return db.__getitem__.return_value


# -----------------------------
# MongoProblemStore
# -----------------------------

def test_list_exposes_string_id(db, coll):
    oid = ObjectId()
    coll.find.return_value = [{"_id": oid, "title": "Two Sum", "isSolved": False}]

    problems = MongoProblemStore(db).list()

    coll.find.assert_called_once_with({})
    db.__getitem__.assert_called_with("problem")
    assert problems == [{"id": str(oid), "title": "Two Sum", "isSolved": False}]


def test_create_applies_defaults_and_timestamps(db, coll):
    oid = ObjectId()
    coll.insert_one.return_value.inserted_id = oid

    new_id = MongoProblemStore(db).create({"title": "Two Sum"})

    assert new_id == str(oid)
    doc = coll.insert_one.call_args.args[0]
    assert doc["title"] == "Two Sum"
    assert doc["difficulty"] == "easy"
    assert doc["isSolved"] is False
    assert doc["examples"] == []
    assert doc["createdAt"] == doc["updatedAt"]
    assert "description" not in doc


def test_update_sets_fields_and_bumps_updated_at(db, coll):
    oid = ObjectId()

    assert MongoProblemStore(db).update(str(oid), {"isSolved": True}) is True

    query, update = coll.update_one.call_args.args
    assert query == {"_id": oid}
    assert update["$set"]["isSolved"] is True
    assert "updatedAt" in update["$set"]


def test_update_and_delete_ignore_malformed_id(db, coll):
    store = MongoProblemStore(db)

    assert store.update("not-an-id", {"title": "x"}) is True
    assert store.delete("not-an-id") is True
    coll.update_one.assert_not_called()
    coll.delete_one.assert_not_called()


def test_delete(db, coll):
    oid = ObjectId()
    assert MongoProblemStore(db).delete(str(oid)) is True
    coll.delete_one.assert_called_once_with({"_id": oid})


def test_driver_errors_become_store_errors(db, coll):
    coll.find.side_effect = ServerSelectionTimeoutError("no servers")
    coll.insert_one.side_effect = ServerSelectionTimeoutError("no servers")
    store = MongoProblemStore(db)

    with pytest.raises(StoreError):
        store.list()
    with pytest.raises(StoreError):
        store.create({"title": "x"})


# -----------------------------
# MongoStatsStore
# -----------------------------

def test_stats_get_upserts_well_known_record(db, coll):
    coll.find_one_and_update.return_value = {
        "_id": STATS_ID, "totalSolved": 0, "easy": 0, "medium": 0,
        "hard": 0, "streak": 0, "lastPracticed": None,
    }

    stats = MongoStatsStore(db).get()

    db.__getitem__.assert_called_with("userstats")
    args, kwargs = coll.find_one_and_update.call_args
    assert args[0] == {"_id": STATS_ID}
    assert args[1]["$setOnInsert"]["totalSolved"] == 0
    assert args[1]["$setOnInsert"]["lastPracticed"] is None
    assert kwargs["upsert"] is True
    assert kwargs["return_document"] == ReturnDocument.AFTER
    assert stats["id"] == STATS_ID


def test_stats_update_defaults_only_absent_fields(db, coll):
    MongoStatsStore(db).update({"totalSolved": 5, "easy": 5})

    args, kwargs = coll.update_one.call_args
    assert args[0] == {"_id": STATS_ID}
    assert args[1]["$set"] == {"totalSolved": 5, "easy": 5}
    assert args[1]["$setOnInsert"] == {"medium": 0, "hard": 0, "streak": 0, "lastPracticed": None}
    assert kwargs["upsert"] is True


def test_stats_update_with_empty_payload(db, coll):
    MongoStatsStore(db).update({})

    update = coll.update_one.call_args.args[1]
    assert "$set" not in update
    assert update["$setOnInsert"]["totalSolved"] == 0


# -----------------------------
# MongoDatabase
# -----------------------------

def test_database_ping_and_close():
    with patch("database.MongoClient") as client_cls:
        database = MongoDatabase("mongodb://example:27017", "practice_tracker", timeout_ms=100)
        assert database.ping() is True
        client_cls.assert_called_once_with("mongodb://example:27017", serverSelectionTimeoutMS=100)

        client_cls.return_value.__getitem__.return_value.command.side_effect = (
            ServerSelectionTimeoutError("down")
        )
        assert database.ping() is False

        database.close()
        client_cls.return_value.close.assert_called_once()


# -----------------------------
# In-memory stores
# -----------------------------

def test_in_memory_problem_store_roundtrip():
    store = InMemoryProblemStore()
    problem_id = store.create({"title": "Two Sum", "difficulty": "hard"})

    store.update(problem_id, {"isSolved": True})
    store.update("missing", {"title": "ghost"})
    [problem] = store.list()

    assert problem["id"] == problem_id
    assert problem["difficulty"] == "hard"
    assert problem["isSolved"] is True
    assert problem["updatedAt"] >= problem["createdAt"]

    store.delete(problem_id)
    store.delete(problem_id)
    assert store.count() == 0


def test_in_memory_stats_store_get_or_create():
    store = InMemoryStatsStore()
    store.update({"streak": 2})

    stats = store.get()
    assert stats["streak"] == 2
    assert stats["totalSolved"] == 0
    assert stats["id"] == STATS_ID
    assert store.count() == 1
