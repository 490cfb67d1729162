from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace

import pytest
from pymongo import ASCENDING, UpdateOne
from pymongo.errors import BulkWriteError

from attendance_tracker.db import BeanieStore, _object_id
from attendance_tracker.models import AttendanceRecord, DEPARTMENTS, Department, Student, Subject


def _unique_keys(model):
    return [
        tuple(index.document["key"].keys())
        for index in model.Settings.indexes
        if index.document.get("unique")
    ]


class FakeCursor:
    def __init__(self, rows):
        self._rows = rows

    async def to_list(self, length=None):
        return list(self._rows)


class FakeCollection:
    """Records what the store sends to the attendance collection."""

    def __init__(self, error=None, result=None, rows=()):
        self.error = error
        self.result = result
        self.rows = rows
        self.bulk_calls = []
        self.pipelines = []

    async def bulk_write(self, ops, ordered=True):
        self.bulk_calls.append({"ops": ops, "ordered": ordered})
        if self.error:
            raise self.error
        return self.result

    def aggregate(self, pipeline):
        self.pipelines.append(pipeline)
        return FakeCursor(self.rows)


@pytest.fixture
def collection(monkeypatch):
    fake = FakeCollection()
    monkeypatch.setattr(AttendanceRecord, "get_motor_collection", classmethod(lambda cls: fake))
    return fake


def _row(student_id, status="Present"):
    now = datetime(2024, 1, 1, 9, 30)
    return {
        "student_id": student_id,
        "subject_id": "subject-1",
        "department_id": "dept-1",
        "date": datetime(2024, 1, 1),
        "status": status,
        "marked_by": None,
        "created_at": now,
        "updated_at": now,
    }


def test_object_id_rejects_malformed_ids():
    assert _object_id("not-an-object-id") is None
    assert _object_id(None) is None
    assert str(_object_id("65a1b2c3d4e5f60718293a4b")) == "65a1b2c3d4e5f60718293a4b"


async def test_malformed_ids_read_as_missing_without_a_round_trip():
    store = BeanieStore(client=None)

    assert await store.get(DEPARTMENTS, "bogus") is None
    assert await store.update(DEPARTMENTS, "bogus", {"name": "x"}) is None
    assert await store.delete(DEPARTMENTS, "bogus") is False
    assert await store.get_many(DEPARTMENTS, ["bogus"]) == {}


async def test_empty_bulk_write_is_skipped(collection):
    summary = await BeanieStore(client=None).upsert_attendance([])

    assert (summary.inserted, summary.modified, summary.upserted, summary.failed) == (0, 0, 0, 0)
    assert collection.bulk_calls == []


async def test_bulk_upsert_is_unordered_and_keyed_by_student_subject_day(collection):
    collection.result = SimpleNamespace(inserted_count=0, modified_count=1, upserted_count=1)

    summary = await BeanieStore(client=None).upsert_attendance([_row("s1"), _row("s2", "Absent")])

    [call] = collection.bulk_calls
    assert call["ordered"] is False
    assert call["ops"][0] == UpdateOne(
        {"student_id": "s1", "subject_id": "subject-1", "date": datetime(2024, 1, 1)},
        {
            "$set": {
                "department_id": "dept-1",
                "status": "Present",
                "marked_by": None,
                "updated_at": datetime(2024, 1, 1, 9, 30),
            },
            "$setOnInsert": {"created_at": datetime(2024, 1, 1, 9, 30)},
        },
        upsert=True,
    )
    assert len(call["ops"]) == 2
    assert (summary.modified, summary.upserted, summary.failed) == (1, 1, 0)


async def test_bulk_write_error_becomes_partial_counts(collection):
    collection.error = BulkWriteError(
        {
            "writeErrors": [{"index": 1, "code": 11000, "errmsg": "E11000 duplicate key error"}],
            "nInserted": 0,
            "nUpserted": 1,
            "nModified": 0,
            "nMatched": 0,
            "nRemoved": 0,
            "upserted": [{"index": 0, "_id": "x"}],
        }
    )

    summary = await BeanieStore(client=None).upsert_attendance([_row("s1"), _row("s2")])

    assert (summary.inserted, summary.modified, summary.upserted, summary.failed) == (0, 0, 1, 1)
    assert collection.bulk_calls[0]["ordered"] is False


async def test_count_attendance_groups_in_the_database(collection):
    collection.rows = [
        {"_id": {"status": "Present", "key": "subject-1"}, "count": 3},
        {"_id": {"status": "Absent", "key": "subject-1"}, "count": 1},
    ]

    counts = await BeanieStore(client=None).count_attendance("subject_id", {"department_id": "dept-1"})

    assert counts == {("subject-1", "Present"): 3, ("subject-1", "Absent"): 1}
    assert collection.pipelines == [
        [
            {"$match": {"department_id": "dept-1"}},
            {"$group": {"_id": {"status": "$status", "key": "$subject_id"}, "count": {"$sum": 1}}},
        ]
    ]


async def test_count_attendance_by_status_only(collection):
    collection.rows = [{"_id": {"status": "Absent"}, "count": 2}]

    counts = await BeanieStore(client=None).count_attendance()

    assert counts == {(None, "Absent"): 2}
    assert collection.pipelines[0][1]["$group"]["_id"] == {"status": "$status"}


def test_unique_indexes_are_declared():
    assert _unique_keys(AttendanceRecord) == [("student_id", "subject_id", "date")]
    assert _unique_keys(Subject) == [("code", "department_id")]


@pytest.mark.parametrize("model, field", [(Department, "name"), (Student, "roll_number")])
def test_single_field_unique_indexes_are_declared(model, field):
    index_type, options = model.model_fields[field].annotation._indexed

    assert index_type == ASCENDING
    assert options.get("unique") is True
