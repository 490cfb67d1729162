from __future__ import annotations

import copy
import itertools
from datetime import datetime, timedelta
from typing import Iterable, Optional

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError

from attendance_tracker.api.deps import get_store
from attendance_tracker.db import ATTENDANCE_KEY, BulkWriteSummary
from attendance_tracker.main import app
from attendance_tracker.models import ATTENDANCE, DEPARTMENTS, STUDENTS, SUBJECTS

UNIQUE_KEYS = {
    DEPARTMENTS: [("name",)],
    SUBJECTS: [("code", "department_id")],
    STUDENTS: [("roll_number",)],
    ATTENDANCE: [ATTENDANCE_KEY],
}


def _matches(record: dict, filters: dict) -> bool:
    for field, expected in filters.items():
        value = record.get(field)
        if isinstance(expected, dict):
            if "$in" in expected and value not in expected["$in"]:
                return False
            if "$gte" in expected and not value >= expected["$gte"]:
                return False
            if "$lt" in expected and not value < expected["$lt"]:
                return False
        elif value != expected:
            return False
    return True


class InMemoryStore:
    """Dict-backed Store enforcing the same unique keys as the Mongo indexes."""

    def __init__(self):
        self.collections: dict[str, dict[str, dict]] = {name: {} for name in UNIQUE_KEYS}
        self._ids = itertools.count(1)
        # student ids whose attendance upserts fail, to exercise partial bulk writes
        self.failing_students: set[str] = set()

    def _check_unique(self, collection: str, candidate: dict, exclude_id: Optional[str] = None):
        for key in UNIQUE_KEYS[collection]:
            value = tuple(candidate.get(f) for f in key)
            for record_id, other in self.collections[collection].items():
                if record_id != exclude_id and tuple(other.get(f) for f in key) == value:
                    raise DuplicateKeyError(
                        "E11000 duplicate key error",
                        code=11000,
                        details={"keyPattern": {f: 1 for f in key}, "keyValue": dict(zip(key, value))},
                    )

    def _new_id(self) -> str:
        return f"{next(self._ids):024x}"

    async def find(self, collection: str, filters: Optional[dict] = None) -> list[dict]:
        return [
            copy.deepcopy(r) for r in self.collections[collection].values() if _matches(r, filters or {})
        ]

    async def get(self, collection: str, record_id: str) -> Optional[dict]:
        record = self.collections[collection].get(record_id)
        return copy.deepcopy(record) if record else None

    async def get_many(self, collection: str, record_ids: Iterable[str]) -> dict[str, dict]:
        records = self.collections[collection]
        return {i: copy.deepcopy(records[i]) for i in set(record_ids) if i in records}

    async def insert(self, collection: str, data: dict) -> dict:
        self._check_unique(collection, data)
        record = {**copy.deepcopy(data), "id": self._new_id()}
        self.collections[collection][record["id"]] = record
        return copy.deepcopy(record)

    async def update(self, collection: str, record_id: str, changes: dict) -> Optional[dict]:
        existing = self.collections[collection].get(record_id)
        if not existing:
            return None
        candidate = {**existing, **copy.deepcopy(changes)}
        self._check_unique(collection, candidate, exclude_id=record_id)
        self.collections[collection][record_id] = candidate
        return copy.deepcopy(candidate)

    async def delete(self, collection: str, record_id: str) -> bool:
        return self.collections[collection].pop(record_id, None) is not None

    async def delete_where(self, collection: str, filters: dict) -> int:
        doomed = [i for i, r in self.collections[collection].items() if _matches(r, filters)]
        for record_id in doomed:
            del self.collections[collection][record_id]
        return len(doomed)

    async def find_attendance(self, filters: Optional[dict] = None, day: Optional[datetime] = None) -> list[dict]:
        query = dict(filters or {})
        if day is not None:
            query["date"] = {"$gte": day, "$lt": day + timedelta(days=1)}
        return await self.find(ATTENDANCE, query)

    async def count_attendance(
        self, group_by: Optional[str] = None, filters: Optional[dict] = None
    ) -> dict[tuple[Optional[str], str], int]:
        counts: dict[tuple[Optional[str], str], int] = {}
        for record in await self.find(ATTENDANCE, filters):
            key = (record.get(group_by) if group_by else None, record["status"])
            counts[key] = counts.get(key, 0) + 1
        return counts

    async def upsert_attendance(self, rows: list[dict]) -> BulkWriteSummary:
        summary = BulkWriteSummary()
        records = self.collections[ATTENDANCE]
        for row in rows:
            if row["student_id"] in self.failing_students:
                summary.failed += 1
                continue
            key = tuple(row[f] for f in ATTENDANCE_KEY)
            existing = next(
                (r for r in records.values() if tuple(r[f] for f in ATTENDANCE_KEY) == key), None
            )
            values = {k: v for k, v in row.items() if k != "created_at"}
            if existing is None:
                record = {**row, "id": self._new_id()}
                records[record["id"]] = record
                summary.upserted += 1
            elif any(existing.get(k) != v for k, v in values.items()):
                existing.update(values)
                summary.modified += 1
        return summary

    def count(self, collection: str) -> int:
        return len(self.collections[collection])


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


async def seed(store: InMemoryStore) -> dict:
    """Two departments, a subject each, three students."""
    now = datetime(2024, 1, 1)
    cs = await store.insert(DEPARTMENTS, {"name": "Computer Science", "created_at": now, "updated_at": now})
    me = await store.insert(DEPARTMENTS, {"name": "Mechanical", "created_at": now, "updated_at": now})
    algo = await store.insert(
        SUBJECTS, {"name": "Algorithms", "code": "CS201", "department_id": cs["id"], "created_at": now, "updated_at": now}
    )
    thermo = await store.insert(
        SUBJECTS, {"name": "Thermodynamics", "code": "ME101", "department_id": me["id"], "created_at": now, "updated_at": now}
    )
    ada = await store.insert(
        STUDENTS, {"name": "Ada", "roll_number": "CS-002", "department_id": cs["id"], "created_at": now, "updated_at": now}
    )
    alan = await store.insert(
        STUDENTS, {"name": "Alan", "roll_number": "CS-001", "department_id": cs["id"], "created_at": now, "updated_at": now}
    )
    carnot = await store.insert(
        STUDENTS, {"name": "Sadi", "roll_number": "ME-001", "department_id": me["id"], "created_at": now, "updated_at": now}
    )
    return {"cs": cs, "me": me, "algo": algo, "thermo": thermo, "ada": ada, "alan": alan, "carnot": carnot}


@pytest.fixture
async def seeded(store) -> dict:
    return await seed(store)
