"""
MongoDB connection lifecycle and document helpers.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


class MongoDatabase:
    """Owns the MongoClient for the lifetime of the application.

    ``connect`` is called once from the app lifespan before serving and
    ``close`` on shutdown. The client connects lazily, so ``ping`` is what
    actually proves the server is reachable.
    """

    def __init__(self, uri: str, name: str, timeout_ms: int = 5000):
        self.uri = uri
        self.name = name
        self.timeout_ms = timeout_ms
        self._client: Optional[MongoClient] = None

    def connect(self) -> Database:
        if self._client is None:
            self._client = MongoClient(self.uri, serverSelectionTimeoutMS=self.timeout_ms)
        return self._client[self.name]

    @property
    def db(self) -> Database:
        return self.connect()

    def ping(self) -> bool:
        try:
            self.db.command("ping")
            return True
        except PyMongoError as e:
            logger.error(f"MongoDB connection error: {e}")
            return False

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


# -----------------------------
# Helpers
# -----------------------------

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def collection_name(model_cls) -> str:
    return model_cls.__name__.lower()


def parse_object_id(value: str) -> Optional[ObjectId]:
    """Return the ObjectId for ``value``, or None if it is not a valid id."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def to_str_id(doc: Dict[str, Any]):
    if not doc:
        return doc
    d = dict(doc)
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    # Convert nested ObjectIds if any
    for k, v in d.items():
        if isinstance(v, ObjectId):
            d[k] = str(v)
        if isinstance(v, list):
            d[k] = [str(x) if isinstance(x, ObjectId) else x for x in v]
    return d


def create_document(db: Database, collection: str, data: Union[BaseModel, dict]) -> str:
    """Insert ``data`` with createdAt/updatedAt stamps and return the new id."""
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True, exclude_none=True)
    now = utcnow()
    doc = {**data, "createdAt": now, "updatedAt": now}
    result = db[collection].insert_one(doc)
    return str(result.inserted_id)


def get_documents(db: Database, collection: str, filter_dict: Dict[str, Any] = None) -> List[dict]:
    return list(db[collection].find(filter_dict or {}))
