"""Student CRUD with department reference checks."""
import logging
from typing import Optional

from pymongo.errors import DuplicateKeyError

from attendance_tracker.db import Store
from attendance_tracker.errors import ConflictError, NotFoundError
from attendance_tracker.models import (
    ATTENDANCE,
    STUDENTS,
    DeleteResult,
    StudentCreate,
    StudentOut,
    StudentUpdate,
)
from attendance_tracker.models.base import department_ref
from attendance_tracker.services.common import departments_by_id, ensure_department, utcnow

logger = logging.getLogger(__name__)


def _out(record: dict, department: Optional[dict]) -> StudentOut:
    return StudentOut(
        id=record["id"],
        name=record["name"],
        roll_number=record["roll_number"],
        department=department_ref(department),
        created_at=record.get("created_at"),
        updated_at=record.get("updated_at"),
    )


def _conflict(roll_number: str) -> ConflictError:
    return ConflictError(
        f"Student roll number '{roll_number}' already exists.", field="rollNumber", value=roll_number
    )


class StudentService:
    def __init__(self, store: Store):
        self.store = store

    async def list_all(self, department_id: Optional[str] = None) -> list[StudentOut]:
        filters = {"department_id": department_id} if department_id else {}
        records = await self.store.find(STUDENTS, filters)
        departments = await departments_by_id(self.store, records)
        records.sort(key=lambda r: r["roll_number"])
        return [_out(r, departments.get(r["department_id"])) for r in records]

    async def _load(self, student_id: str) -> dict:
        record = await self.store.get(STUDENTS, student_id)
        if not record:
            raise NotFoundError("Cannot find student")
        return record

    async def get(self, student_id: str) -> StudentOut:
        record = await self._load(student_id)
        departments = await departments_by_id(self.store, [record])
        return _out(record, departments.get(record["department_id"]))

    async def create(self, data: StudentCreate) -> StudentOut:
        department = await ensure_department(self.store, data.department_id)
        now = utcnow()
        try:
            record = await self.store.insert(
                STUDENTS,
                {
                    "name": data.name,
                    "roll_number": data.roll_number,
                    "department_id": data.department_id,
                    "created_at": now,
                    "updated_at": now,
                },
            )
        except DuplicateKeyError:
            raise _conflict(data.roll_number) from None
        return _out(record, department)

    async def update(self, student_id: str, data: StudentUpdate) -> StudentOut:
        existing = await self._load(student_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "department_id" in changes:
            await ensure_department(self.store, changes["department_id"])
        if changes:
            changes["updated_at"] = utcnow()
            try:
                record = await self.store.update(STUDENTS, student_id, changes)
            except DuplicateKeyError:
                raise _conflict(changes.get("roll_number", existing["roll_number"])) from None
            if not record:
                raise NotFoundError("Cannot find student")
        else:
            record = existing
        departments = await departments_by_id(self.store, [record])
        return _out(record, departments.get(record["department_id"]))

    async def delete(self, student_id: str) -> DeleteResult:
        # Existing attendance for the student goes with it.
        await self._load(student_id)
        removed = {"attendance": await self.store.delete_where(ATTENDANCE, {"student_id": student_id})}
        await self.store.delete(STUDENTS, student_id)
        logger.info("Deleted student %s with dependents %s", student_id, removed)
        return DeleteResult(message="Deleted Student", removed=removed)
