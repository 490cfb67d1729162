"""MongoDB connection, Beanie document registration and the store handed to services."""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional, Protocol

from beanie import Document, PydanticObjectId, init_beanie
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import UpdateOne
from pymongo.errors import BulkWriteError

from attendance_tracker.config import Settings
from attendance_tracker.models import ATTENDANCE, DOCUMENT_MODELS

logger = logging.getLogger(__name__)

# Fields identifying one attendance record.
ATTENDANCE_KEY = ("student_id", "subject_id", "date")


@dataclass
class BulkWriteSummary:
    inserted: int = 0
    modified: int = 0
    upserted: int = 0
    failed: int = 0


class Store(Protocol):
    """Persistence operations the services rely on.

    Records are plain dicts carrying their id as a string under ``"id"``.
    Writes that break a unique index raise ``pymongo.errors.DuplicateKeyError``.
    """

    async def find(self, collection: str, filters: Optional[dict] = None) -> list[dict]:
        ...

    async def get(self, collection: str, record_id: str) -> Optional[dict]:
        ...

    async def get_many(self, collection: str, record_ids: Iterable[str]) -> dict[str, dict]:
        ...

    async def insert(self, collection: str, data: dict) -> dict:
        ...

    async def update(self, collection: str, record_id: str, changes: dict) -> Optional[dict]:
        ...

    async def delete(self, collection: str, record_id: str) -> bool:
        ...

    async def delete_where(self, collection: str, filters: dict) -> int:
        ...

    async def find_attendance(self, filters: Optional[dict] = None, day: Optional[datetime] = None) -> list[dict]:
        ...

    async def count_attendance(
        self, group_by: Optional[str] = None, filters: Optional[dict] = None
    ) -> dict[tuple[Optional[str], str], int]:
        """Record counts keyed by (value of `group_by` or None, status)."""
        ...

    async def upsert_attendance(self, rows: list[dict]) -> BulkWriteSummary:
        ...


def _object_id(record_id: Any) -> Optional[PydanticObjectId]:
    if not isinstance(record_id, str):
        return None
    try:
        return PydanticObjectId(record_id)
    except InvalidId:
        return None


def _as_record(doc: Document) -> dict:
    data = doc.model_dump(exclude={"id", "revision_id"})
    data["id"] = str(doc.id)
    return data


class BeanieStore:
    """Store backed by MongoDB through Beanie. Build with :meth:`connect`."""

    def __init__(self, client: AsyncIOMotorClient):
        self._client = client

    @classmethod
    async def connect(cls, settings: Settings) -> "BeanieStore":
        """Connect to MongoDB, register documents and create their indexes."""
        client = AsyncIOMotorClient(
            settings.mongodb_url, serverSelectionTimeoutMS=settings.mongodb_timeout_ms
        )
        await init_beanie(
            database=client[settings.mongodb_db_name],
            document_models=list(DOCUMENT_MODELS.values()),
        )
        logger.info("Connected to MongoDB database %s", settings.mongodb_db_name)
        return cls(client)

    def close(self) -> None:
        self._client.close()
        logger.info("MongoDB connection closed")

    async def find(self, collection: str, filters: Optional[dict] = None) -> list[dict]:
        docs = await DOCUMENT_MODELS[collection].find(filters or {}).to_list()
        return [_as_record(d) for d in docs]

    async def get(self, collection: str, record_id: str) -> Optional[dict]:
        oid = _object_id(record_id)
        if oid is None:
            return None
        doc = await DOCUMENT_MODELS[collection].get(oid)
        return _as_record(doc) if doc else None

    async def get_many(self, collection: str, record_ids: Iterable[str]) -> dict[str, dict]:
        oids = [oid for oid in (_object_id(i) for i in set(record_ids)) if oid is not None]
        if not oids:
            return {}
        docs = await DOCUMENT_MODELS[collection].find({"_id": {"$in": oids}}).to_list()
        return {str(d.id): _as_record(d) for d in docs}

    async def insert(self, collection: str, data: dict) -> dict:
        doc = DOCUMENT_MODELS[collection](**data)
        await doc.insert()
        return _as_record(doc)

    async def update(self, collection: str, record_id: str, changes: dict) -> Optional[dict]:
        oid = _object_id(record_id)
        if oid is None:
            return None
        doc = await DOCUMENT_MODELS[collection].get(oid)
        if not doc:
            return None
        for key, value in changes.items():
            setattr(doc, key, value)
        await doc.save()
        return _as_record(doc)

    async def delete(self, collection: str, record_id: str) -> bool:
        oid = _object_id(record_id)
        if oid is None:
            return False
        doc = await DOCUMENT_MODELS[collection].get(oid)
        if not doc:
            return False
        await doc.delete()
        return True

    async def delete_where(self, collection: str, filters: dict) -> int:
        result = await DOCUMENT_MODELS[collection].find(filters).delete()
        return result.deleted_count if result else 0

    async def find_attendance(self, filters: Optional[dict] = None, day: Optional[datetime] = None) -> list[dict]:
        query = dict(filters or {})
        if day is not None:
            query["date"] = {"$gte": day, "$lt": day + timedelta(days=1)}
        return await self.find(ATTENDANCE, query)

    async def count_attendance(
        self, group_by: Optional[str] = None, filters: Optional[dict] = None
    ) -> dict[tuple[Optional[str], str], int]:
        group_id = {"status": "$status"}
        if group_by:
            group_id["key"] = f"${group_by}"
        pipeline = [
            {"$match": filters or {}},
            {"$group": {"_id": group_id, "count": {"$sum": 1}}},
        ]
        collection = DOCUMENT_MODELS[ATTENDANCE].get_motor_collection()
        rows = await collection.aggregate(pipeline).to_list(length=None)
        return {(row["_id"].get("key"), row["_id"]["status"]): row["count"] for row in rows}

    async def upsert_attendance(self, rows: list[dict]) -> BulkWriteSummary:
        """Unordered bulk of independent upserts; partial failures are reported, not raised."""
        if not rows:
            return BulkWriteSummary()
        ops = []
        for row in rows:
            key = {field: row[field] for field in ATTENDANCE_KEY}
            values = {k: v for k, v in row.items() if k not in ATTENDANCE_KEY and k != "created_at"}
            ops.append(
                UpdateOne(
                    key,
                    {"$set": values, "$setOnInsert": {"created_at": row.get("created_at", datetime.utcnow())}},
                    upsert=True,
                )
            )
        collection = DOCUMENT_MODELS[ATTENDANCE].get_motor_collection()
        try:
            result = await collection.bulk_write(ops, ordered=False)
        except BulkWriteError as exc:
            details = exc.details
            summary = BulkWriteSummary(
                inserted=details.get("nInserted", 0),
                modified=details.get("nModified", 0),
                upserted=details.get("nUpserted", 0),
                failed=len(details.get("writeErrors", [])),
            )
            logger.warning("Attendance bulk write partially failed: %s", summary)
            return summary
        return BulkWriteSummary(
            inserted=result.inserted_count,
            modified=result.modified_count,
            upserted=result.upserted_count,
        )
