"""
MongoDB access shared by every router.

A single MongoClient is created at startup and reused for all requests.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database

from config import get_settings
from errors import ValidationError

logger = structlog.get_logger(__name__)

client: Optional[MongoClient] = None
db: Optional[Database] = None


def init_db() -> Database:
    global client, db
    settings = get_settings()
    client = MongoClient(settings.database_url, tz_aware=True)
    db = client[settings.database_name]
    logger.info("Database client initialized", database=settings.database_name)
    return db


def close_db() -> None:
    global client, db
    if client is not None:
        client.close()
        logger.info("Database client closed")
    client = None
    db = None


def get_db() -> Database:
    if db is None:
        return init_db()
    return db


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def oid(id_str: str) -> ObjectId:
    if not isinstance(id_str, str):
        raise ValidationError("Invalid id format")
    try:
        return ObjectId(id_str)
    except InvalidId:
        raise ValidationError("Invalid id format")


def to_document(data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True)
    return dict(data)


def create_document(database: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    """Insert a record stamped with createdAt/updatedAt and return it with its id."""
    doc = to_document(data)
    now = utcnow()
    doc["createdAt"] = now
    doc["updatedAt"] = now
    result = database[collection_name].insert_one(doc)
    doc["_id"] = result.inserted_id
    return serialize(doc)


def get_documents(database: Database, collection_name: str, filter_dict: Optional[Dict[str, Any]] = None,
                  sort: Optional[List[tuple]] = None, skip: int = 0, limit: int = 0) -> List[Dict[str, Any]]:
    cursor = database[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if skip:
        cursor = cursor.skip(skip)
    if limit:
        cursor = cursor.limit(limit)
    return [serialize(d) for d in cursor]


def serialize(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Expose _id as a string "id"."""
    if doc is None:
        return None
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    return doc
