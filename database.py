"""
MongoDB access.

Collections are named after the lowercase schema class ("product", "user").
`db` is None when no database is configured; routes get the handle through
the `get_db` dependency so tests can swap in another database.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import HTTPException
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from errors import ERROR_DATABASE_UNAVAILABLE
from logger import get_logger
from settings import settings

logger = get_logger(__name__)

client: Optional[MongoClient] = None
db: Optional[Database] = None

if settings.DATABASE_URL and settings.DATABASE_NAME:
    client = MongoClient(settings.DATABASE_URL)
    db = client[settings.DATABASE_NAME]
    logger.info("Using MongoDB database %s", settings.DATABASE_NAME)
else:
    logger.warning("DATABASE_URL or DATABASE_NAME not set, database is disabled")


def get_db() -> Database:
    """FastAPI dependency returning the configured database."""
    if db is None:
        raise HTTPException(status_code=500, detail=ERROR_DATABASE_UNAVAILABLE)
    return db


def ensure_indexes(database: Database) -> None:
    """Create the unique indexes backing product name and slug uniqueness."""
    products = database["product"]
    products.create_index([("name", ASCENDING)], unique=True)
    products.create_index([("slug", ASCENDING)], unique=True)
    products.create_index([("mainCategory", ASCENDING)])


def create_document(database: Database, collection_name: str, data: Dict[str, Any]) -> str:
    """Insert a document stamped with createdAt/updatedAt and return its id."""
    now = datetime.now(timezone.utc)
    document = {**data, "createdAt": now, "updatedAt": now}
    result = database[collection_name].insert_one(document)
    return str(result.inserted_id)


def get_documents(
    database: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
) -> List[Dict[str, Any]]:
    return list(database[collection_name].find(filter_dict or {}))


# -----------------------------
# Serialization
# -----------------------------

def serialize_id(value):
    if isinstance(value, ObjectId):
        return str(value)
    return value


def _serialize_value(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: _serialize_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_serialize_value(v) for v in value]
    return value


def serialize_document(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return doc
    doc = {**doc}
    if doc.get("_id") is not None:
        doc["id"] = serialize_id(doc.pop("_id"))
    # Convert nested ObjectIds, including those inside embedded reviews
    return {k: _serialize_value(v) for k, v in doc.items()}
