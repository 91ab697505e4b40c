"""
MongoDB handle and small collection helpers.

The client is created once per process. Routes receive the database through
the `get_db` dependency so tests can swap in a fake.
"""
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from settings import settings

USER = "user"
CHAT = "chat"
INVOICE_COUNTER = "invoicecounter"
INVOICE = "invoice"

_client: Optional[MongoClient] = None
db: Optional[Database] = None

if settings.DATABASE_URL and settings.DATABASE_NAME:
    # MongoClient connects lazily; nothing blocks at import time.
    _client = MongoClient(settings.DATABASE_URL, tz_aware=True)
    db = _client[settings.DATABASE_NAME]


def get_db() -> Database:
    if db is None:
        raise RuntimeError("DATABASE_URL / DATABASE_NAME not configured")
    return db


def ensure_indexes(database) -> None:
    # One counter document per (company, day, warranty status).
    database[INVOICE_COUNTER].create_index(
        [("companyName", ASCENDING), ("date", ASCENDING), ("warrantyStatus", ASCENDING)],
        unique=True,
    )
    database[INVOICE].create_index([("invoiceNumber", ASCENDING)], unique=True)
    database[CHAT].create_index([("mobile", ASCENDING), ("createdAt", ASCENDING)])
    # Not unique: existing data may already hold duplicate mobiles.
    database[USER].create_index([("mobile", ASCENDING)])
    logger.info("Indexes ensured on {}", database.name)


def serialize(doc: Dict[str, Any]) -> Dict[str, Any]:
    doc["_id"] = str(doc["_id"])  # make JSON serializable
    return doc


def create_document(database, collection_name: str, data: BaseModel) -> str:
    """Insert a record model into `collection_name` and return its id."""
    payload = data.model_dump(by_alias=True)
    result = database[collection_name].insert_one(payload)
    return str(result.inserted_id)


def get_documents(
    database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[List[Tuple[str, int]]] = None,
) -> List[Dict[str, Any]]:
    cursor = database[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    return [serialize(doc) for doc in cursor]


__all__ = [
    "ASCENDING",
    "DESCENDING",
    "CHAT",
    "INVOICE",
    "INVOICE_COUNTER",
    "USER",
    "create_document",
    "db",
    "ensure_indexes",
    "get_db",
    "get_documents",
    "serialize",
]
