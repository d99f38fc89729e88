"""
Problem and stats stores, backed by MongoDB or by process memory.

The in-memory stores are for local development and tests; they keep the same
contract as the Mongo ones, including the no-op on unknown ids.
"""
import copy
import logging
from contextlib import contextmanager
from typing import Dict, List, Protocol

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import (
    collection_name,
    create_document,
    get_documents,
    parse_object_id,
    to_str_id,
    utcnow,
)
from errors import StoreError
from schemas import Problem, UserStats

logger = logging.getLogger(__name__)

# Well-known key of the single stats document.
STATS_ID = "user-stats"


def stats_defaults() -> dict:
    return UserStats().model_dump(by_alias=True)


@contextmanager
def store_errors(operation: str):
    try:
        yield
    except PyMongoError as e:
        raise StoreError(f"{operation} failed: {e}") from e


class ProblemStore(Protocol):
    def list(self) -> List[dict]:
        ...

    def create(self, record: dict) -> str:
        ...

    def update(self, problem_id: str, changes: dict) -> bool:
        ...

    def delete(self, problem_id: str) -> bool:
        ...

    def count(self) -> int:
        ...


class StatsStore(Protocol):
    def get(self) -> dict:
        ...

    def update(self, changes: dict) -> bool:
        ...

    def count(self) -> int:
        ...


# -----------------------------
# MongoDB
# -----------------------------

class MongoProblemStore:
    def __init__(self, db: Database):
        self.db = db
        self.coll = collection_name(Problem)

    def list(self) -> List[dict]:
        with store_errors("list problems"):
            return [to_str_id(d) for d in get_documents(self.db, self.coll)]

    def create(self, record: dict) -> str:
        problem = Problem(**record)
        with store_errors("create problem"):
            return create_document(self.db, self.coll, problem)

    def update(self, problem_id: str, changes: dict) -> bool:
        oid = parse_object_id(problem_id)
        if oid is None:
            return True
        with store_errors("update problem"):
            self.db[self.coll].update_one(
                {"_id": oid}, {"$set": {**changes, "updatedAt": utcnow()}}
            )
        return True

    def delete(self, problem_id: str) -> bool:
        oid = parse_object_id(problem_id)
        if oid is None:
            return True
        with store_errors("delete problem"):
            self.db[self.coll].delete_one({"_id": oid})
        return True

    def count(self) -> int:
        with store_errors("count problems"):
            return self.db[self.coll].count_documents({})


class MongoStatsStore:
    def __init__(self, db: Database):
        self.db = db
        self.coll = collection_name(UserStats)

    def get(self) -> dict:
        # Upsert on the well-known key so racing first reads share one document.
        with store_errors("get user stats"):
            doc = self.db[self.coll].find_one_and_update(
                {"_id": STATS_ID},
                {"$setOnInsert": stats_defaults()},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        return to_str_id(doc)

    def update(self, changes: dict) -> bool:
        update = {}
        if changes:
            update["$set"] = changes
        on_insert = {k: v for k, v in stats_defaults().items() if k not in changes}
        if on_insert:
            update["$setOnInsert"] = on_insert
        with store_errors("update user stats"):
            self.db[self.coll].update_one({"_id": STATS_ID}, update, upsert=True)
        return True

    def count(self) -> int:
        with store_errors("count user stats"):
            return self.db[self.coll].count_documents({})


# -----------------------------
# In-memory
# -----------------------------

class InMemoryProblemStore:
    """Simple in-memory problem collection for development and tests."""

    def __init__(self):
        self.problems: Dict[str, dict] = {}

    def list(self) -> List[dict]:
        return [{**copy.deepcopy(doc), "id": pid} for pid, doc in self.problems.items()]

    def create(self, record: dict) -> str:
        problem_id = str(ObjectId())
        now = utcnow()
        doc = Problem(**record).model_dump(by_alias=True, exclude_none=True)
        self.problems[problem_id] = {**doc, "createdAt": now, "updatedAt": now}
        return problem_id

    def update(self, problem_id: str, changes: dict) -> bool:
        doc = self.problems.get(problem_id)
        if doc is not None:
            doc.update(copy.deepcopy(changes))
            doc["updatedAt"] = utcnow()
        return True

    def delete(self, problem_id: str) -> bool:
        self.problems.pop(problem_id, None)
        return True

    def count(self) -> int:
        return len(self.problems)


class InMemoryStatsStore:
    def __init__(self):
        self.stats: Dict[str, dict] = {}

    def get(self) -> dict:
        doc = self.stats.setdefault(STATS_ID, stats_defaults())
        return {**copy.deepcopy(doc), "id": STATS_ID}

    def update(self, changes: dict) -> bool:
        if STATS_ID in self.stats:
            self.stats[STATS_ID].update(changes)
        else:
            self.stats[STATS_ID] = {**stats_defaults(), **changes}
        return True

    def count(self) -> int:
        return len(self.stats)
