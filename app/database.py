from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence, Tuple

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from app.config import Settings

log = structlog.get_logger(__name__)

SortSpec = Sequence[Tuple[str, int]]


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse an identifier; anything that is not a valid ObjectId resolves to None"""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def _as_update(delta: Mapping[str, Any]) -> Dict[str, Any]:
    """Plain field dicts become a $set; operator documents pass through"""
    if any(key.startswith("$") for key in delta):
        return dict(delta)
    return {"$set": dict(delta)}


class EntityStore:
    """
    Keyed document storage for one entity kind.

    Every method touches a single collection. Operations on one document are
    atomic; nothing here spans documents atomically.
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    @property
    def kind(self) -> str:
        return self.collection.name

    async def get(self, entity_id: Any) -> Optional[Dict]:
        oid = to_object_id(entity_id)
        if oid is None:
            return None
        return await self.collection.find_one({"_id": oid})

    async def get_by(self, query: Mapping[str, Any]) -> Optional[Dict]:
        return await self.collection.find_one(dict(query))

    def find(
        self,
        query: Optional[Mapping[str, Any]] = None,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None
    ) -> AsyncIterator[Dict]:
        """Lazy cursor over matching documents; each call starts a fresh scan"""
        options = {}
        if sort:
            options["sort"] = list(sort)
        if limit:
            options["limit"] = int(limit)
        return self.collection.find(dict(query or {}), **options)

    async def find_all(
        self,
        query: Optional[Mapping[str, Any]] = None,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None
    ) -> List[Dict]:
        return [doc async for doc in self.find(query, sort=sort, limit=limit)]

    async def aggregate(self, pipeline: Sequence[Mapping[str, Any]]) -> List[Dict]:
        cursor = self.collection.aggregate(list(pipeline))
        return await cursor.to_list(length=None)

    async def count(self, query: Optional[Mapping[str, Any]] = None) -> int:
        return await self.collection.count_documents(dict(query or {}))

    async def insert(self, document: Dict) -> str:
        result = await self.collection.insert_one(document)
        return str(result.inserted_id)

    async def update_one(self, entity_id: Any, delta: Mapping[str, Any]) -> bool:
        oid = to_object_id(entity_id)
        if oid is None:
            return False
        result = await self.collection.update_one({"_id": oid}, _as_update(delta))
        return result.matched_count > 0

    async def update_where(self, query: Mapping[str, Any], delta: Mapping[str, Any]) -> bool:
        result = await self.collection.update_one(dict(query), _as_update(delta))
        return result.matched_count > 0

    async def update_many(self, query: Mapping[str, Any], delta: Mapping[str, Any]) -> int:
        result = await self.collection.update_many(dict(query), _as_update(delta))
        return result.modified_count

    async def compare_and_set(self, query: Mapping[str, Any], delta: Mapping[str, Any]) -> Optional[Dict]:
        """
        Apply delta to the single document matching query, atomically.

        Returns the updated document, or None when no document still matched
        the expected precondition.
        """
        return await self.collection.find_one_and_update(
            dict(query),
            _as_update(delta),
            return_document=ReturnDocument.AFTER
        )

    async def delete(self, entity_id: Any) -> bool:
        oid = to_object_id(entity_id)
        if oid is None:
            return False
        result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count > 0

    async def delete_where(self, query: Mapping[str, Any]) -> bool:
        result = await self.collection.delete_one(dict(query))
        return result.deleted_count > 0


class Database:
    """Store handle built once at startup and passed to every service"""

    def __init__(self, client: AsyncIOMotorClient, database_name: str):
        self.client = client
        self.db: AsyncIOMotorDatabase = client[database_name]
        self.users = EntityStore(self.db.users)
        self.contests = EntityStore(self.db.contests)
        self.submissions = EntityStore(self.db.submissions)
        self.payments = EntityStore(self.db.payments)

    @classmethod
    async def connect(cls, settings: Settings) -> "Database":
        """Connect to MongoDB and make sure indexes exist"""
        client = AsyncIOMotorClient(settings.mongodb_url)
        database = cls(client, settings.database_name)
        log.info("mongodb_connected", database=settings.database_name)
        await database.create_indexes()
        return database

    async def create_indexes(self):
        """Create database indexes"""
        # One account per email
        await self.users.collection.create_index([("email", ASCENDING)], unique=True)

        # One payment per (contest, payer)
        await self.payments.collection.create_index(
            [("contest_id", ASCENDING), ("email", ASCENDING)],
            unique=True
        )
        await self.payments.collection.create_index([("email", ASCENDING), ("created_at", DESCENDING)])

        await self.submissions.collection.create_index([("contest_id", ASCENDING), ("is_winner", ASCENDING)])
        await self.submissions.collection.create_index([("is_winner", ASCENDING), ("declared_at", DESCENDING)])

        await self.contests.collection.create_index([("status", ASCENDING), ("created_at", DESCENDING)])
        await self.contests.collection.create_index([("creator_email", ASCENDING)])
        log.info("mongodb_indexes_ready")

    def close(self):
        """Close MongoDB connection"""
        self.client.close()
        log.info("mongodb_disconnected")


async def get_database(request: Request) -> Database:
    """Dependency to get the store handle attached at startup"""
    return request.app.state.database
