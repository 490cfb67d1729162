"""Department CRUD. Deleting a department removes everything filed under it."""
import logging

from pymongo.errors import DuplicateKeyError

from attendance_tracker.db import Store
from attendance_tracker.errors import ConflictError, NotFoundError
from attendance_tracker.models import (
    ATTENDANCE,
    DEPARTMENTS,
    STUDENTS,
    SUBJECTS,
    DeleteResult,
    DepartmentCreate,
    DepartmentOut,
    DepartmentUpdate,
)
from attendance_tracker.services.common import utcnow

logger = logging.getLogger(__name__)


def _out(record: dict) -> DepartmentOut:
    return DepartmentOut(
        id=record["id"],
        name=record["name"],
        created_at=record.get("created_at"),
        updated_at=record.get("updated_at"),
    )


def _conflict(name: str) -> ConflictError:
    return ConflictError(f"Department name '{name}' already exists.", field="name", value=name)


class DepartmentService:
    def __init__(self, store: Store):
        self.store = store

    async def list_all(self) -> list[DepartmentOut]:
        records = await self.store.find(DEPARTMENTS)
        return [_out(r) for r in sorted(records, key=lambda r: r["name"])]

    async def get(self, department_id: str) -> DepartmentOut:
        record = await self.store.get(DEPARTMENTS, department_id)
        if not record:
            raise NotFoundError("Cannot find department")
        return _out(record)

    async def create(self, data: DepartmentCreate) -> DepartmentOut:
        now = utcnow()
        try:
            record = await self.store.insert(
                DEPARTMENTS, {"name": data.name, "created_at": now, "updated_at": now}
            )
        except DuplicateKeyError:
            raise _conflict(data.name) from None
        return _out(record)

    async def update(self, department_id: str, data: DepartmentUpdate) -> DepartmentOut:
        existing = await self.store.get(DEPARTMENTS, department_id)
        if not existing:
            raise NotFoundError("Cannot find department")
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            return _out(existing)
        changes["updated_at"] = utcnow()
        try:
            record = await self.store.update(DEPARTMENTS, department_id, changes)
        except DuplicateKeyError:
            raise _conflict(changes.get("name", existing["name"])) from None
        if not record:
            raise NotFoundError("Cannot find department")
        return _out(record)

    async def delete(self, department_id: str) -> DeleteResult:
        """Delete a department with its subjects, students and their attendance."""
        existing = await self.store.get(DEPARTMENTS, department_id)
        if not existing:
            raise NotFoundError("Cannot find department")

        subject_ids = [s["id"] for s in await self.store.find(SUBJECTS, {"department_id": department_id})]
        student_ids = [s["id"] for s in await self.store.find(STUDENTS, {"department_id": department_id})]

        removed_attendance = await self.store.delete_where(ATTENDANCE, {"department_id": department_id})
        if subject_ids:
            removed_attendance += await self.store.delete_where(ATTENDANCE, {"subject_id": {"$in": subject_ids}})
        if student_ids:
            removed_attendance += await self.store.delete_where(ATTENDANCE, {"student_id": {"$in": student_ids}})
        removed = {
            "attendance": removed_attendance,
            "subjects": await self.store.delete_where(SUBJECTS, {"department_id": department_id}),
            "students": await self.store.delete_where(STUDENTS, {"department_id": department_id}),
        }
        await self.store.delete(DEPARTMENTS, department_id)
        logger.info("Deleted department %s (%s) with dependents %s", department_id, existing["name"], removed)
        return DeleteResult(message="Deleted Department", removed=removed)
