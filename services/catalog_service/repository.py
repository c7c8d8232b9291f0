"""
Product document store (MongoDB collection "catalog").

Document shape:
    {
        "_id": "6630d1f0c2a4e91b2f3c4d5e",   # ObjectId hex string
        "title": "iPhone 15",
        "price": "1200",                      # decimal kept as string, no float drift
        "category": "Electronics",
        "attributes": {"color": "black"},
        "version": 0,                         # optimistic lock, bumped on every update
        "createdAt": datetime, "updatedAt": datetime,
    }
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo import ASCENDING, ReturnDocument
from pymongo.collection import Collection

logger = logging.getLogger(__name__)

COLLECTION_NAME = "catalog"


def utc_now() -> datetime:
    # MongoDB keeps millisecond precision; truncate so returned and stored values match
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class ProductRepository:
    """CRUD over the catalog collection with version-conditioned updates."""

    def __init__(self, collection: Collection):
        self.collection = collection

    def ensure_indexes(self) -> None:
        self.collection.create_index([("createdAt", ASCENDING)])

    def find_page(self, page: int, size: int) -> Tuple[List[Dict[str, Any]], int]:
        """Documents for one page plus the total document count."""
        total = self.collection.count_documents({})
        cursor = self.collection.find().sort([("createdAt", ASCENDING), ("_id", ASCENDING)]).skip(page * size).limit(size)
        return list(cursor), total

    def find_by_id(self, product_id: str) -> Optional[Dict[str, Any]]:
        return self.collection.find_one({"_id": product_id})

    def insert(self, title: str, price: Decimal, category: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        now = utc_now()
        document = {
            "_id": str(ObjectId()),
            "title": title,
            "price": str(price),
            "category": category,
            "attributes": attributes,
            "version": 0,
            "createdAt": now,
            "updatedAt": now,
        }
        self.collection.insert_one(document)
        logger.info(f"Inserted product document {document['_id']}")
        return document

    def update(
        self,
        product_id: str,
        expected_version: int,
        title: str,
        price: Decimal,
        category: str,
        attributes: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        """
        Replace the mutable fields iff the stored version is expected_version.

        Returns the updated document, or None when nothing matched (missing id
        or version mismatch).
        """
        return self.collection.find_one_and_update(
            {"_id": product_id, "version": expected_version},
            {
                "$set": {
                    "title": title,
                    "price": str(price),
                    "category": category,
                    "attributes": attributes,
                    "updatedAt": utc_now(),
                },
                "$inc": {"version": 1},
            },
            return_document=ReturnDocument.AFTER,
        )

    def exists_by_id(self, product_id: str) -> bool:
        return self.collection.count_documents({"_id": product_id}, limit=1) > 0

    def delete_by_id(self, product_id: str) -> bool:
        return self.collection.delete_one({"_id": product_id}).deleted_count == 1
