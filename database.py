"""
Database helpers

Thin wrapper around a pymongo database. One Store is created at application
startup and handed to every operation; nothing here is module-global.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.database import Database

from config import Settings
from errors import ValidationFailure

logger = logging.getLogger(__name__)


def to_object_id(id_str: str) -> ObjectId:
    if not isinstance(id_str, str) or not ObjectId.is_valid(id_str):
        raise ValidationFailure("Invalid ID format")
    return ObjectId(id_str)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Store:
    def __init__(self, db: Database):
        self.db = db

    def ensure_indexes(self):
        self.db["order"].create_index([("order_number", ASCENDING)], unique=True)
        self.db["sample"].create_index([("status", ASCENDING), ("seller_id", ASCENDING)])
        self.db["product"].create_index([("seller_id", ASCENDING)])

    def collection_names(self) -> List[str]:
        return self.db.list_collection_names()

    def count_documents(self, collection_name: str, filter_dict: Optional[dict] = None) -> int:
        return self.db[collection_name].count_documents(filter_dict or {})

    def create_document(self, collection_name: str, data: Union[BaseModel, dict]) -> str:
        if isinstance(data, BaseModel):
            data_dict = data.model_dump()
        else:
            data_dict = data.copy()
        now = utcnow()
        data_dict["created_at"] = now
        data_dict["updated_at"] = now
        result = self.db[collection_name].insert_one(data_dict)
        return str(result.inserted_id)

    def get_document(self, collection_name: str, doc_id: str) -> Optional[dict]:
        return self.db[collection_name].find_one({"_id": to_object_id(doc_id)})

    def get_documents(self, collection_name: str, filter_dict: Optional[dict] = None,
                      limit: Optional[int] = None) -> List[dict]:
        cursor = self.db[collection_name].find(filter_dict or {})
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)

    def get_documents_by_ids(self, collection_name: str, ids: Iterable[str]) -> Dict[str, dict]:
        """Batch lookup keyed by string id. Malformed or unknown ids are simply absent."""
        object_ids = []
        for id_str in set(ids):
            if id_str and ObjectId.is_valid(id_str):
                object_ids.append(ObjectId(id_str))
        if not object_ids:
            return {}
        docs = self.db[collection_name].find({"_id": {"$in": object_ids}})
        return {str(d["_id"]): d for d in docs}

    def update_document(self, collection_name: str, doc_id: str, values: Dict[str, Any]) -> Optional[dict]:
        return self.update_where(collection_name, doc_id, {}, values)

    def update_where(self, collection_name: str, doc_id: str, expected: Dict[str, Any],
                     values: Dict[str, Any]) -> Optional[dict]:
        """Set ``values`` only if the document still matches ``expected``.

        Returns the updated document, or None when nothing matched.
        """
        filt = {"_id": to_object_id(doc_id), **expected}
        update = {"$set": {**values, "updated_at": utcnow()}}
        return self.db[collection_name].find_one_and_update(
            filt, update, return_document=ReturnDocument.AFTER
        )


def connect(settings: Settings) -> Optional[MongoClient]:
    if not (settings.database_url and settings.database_name):
        logger.warning("DATABASE_URL/DATABASE_NAME not set, running without a database")
        return None
    return MongoClient(settings.database_url)
