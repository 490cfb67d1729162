"""Subject CRUD with department reference checks."""
import logging
from typing import Optional

from pymongo.errors import DuplicateKeyError

from attendance_tracker.db import Store
from attendance_tracker.errors import ConflictError, NotFoundError
from attendance_tracker.models import (
    ATTENDANCE,
    SUBJECTS,
    DeleteResult,
    SubjectCreate,
    SubjectOut,
    SubjectUpdate,
)
from attendance_tracker.models.base import department_ref
from attendance_tracker.services.common import departments_by_id, ensure_department, utcnow

logger = logging.getLogger(__name__)


def _out(record: dict, department: Optional[dict]) -> SubjectOut:
    return SubjectOut(
        id=record["id"],
        name=record["name"],
        code=record["code"],
        department=department_ref(department),
        created_at=record.get("created_at"),
        updated_at=record.get("updated_at"),
    )


def _conflict(code: str) -> ConflictError:
    return ConflictError(
        f"Subject code '{code}' already exists for this department.", field="code", value=code
    )


class SubjectService:
    def __init__(self, store: Store):
        self.store = store

    async def list_all(self, department_id: Optional[str] = None) -> list[SubjectOut]:
        filters = {"department_id": department_id} if department_id else {}
        records = await self.store.find(SUBJECTS, filters)
        departments = await departments_by_id(self.store, records)
        records.sort(key=lambda r: (r["code"], r["name"]))
        return [_out(r, departments.get(r["department_id"])) for r in records]

    async def _load(self, subject_id: str) -> dict:
        record = await self.store.get(SUBJECTS, subject_id)
        if not record:
            raise NotFoundError("Cannot find subject")
        return record

    async def get(self, subject_id: str) -> SubjectOut:
        record = await self._load(subject_id)
        departments = await departments_by_id(self.store, [record])
        return _out(record, departments.get(record["department_id"]))

    async def create(self, data: SubjectCreate) -> SubjectOut:
        department = await ensure_department(self.store, data.department_id)
        now = utcnow()
        try:
            record = await self.store.insert(
                SUBJECTS,
                {
                    "name": data.name,
                    "code": data.code,
                    "department_id": data.department_id,
                    "created_at": now,
                    "updated_at": now,
                },
            )
        except DuplicateKeyError:
            raise _conflict(data.code) from None
        return _out(record, department)

    async def update(self, subject_id: str, data: SubjectUpdate) -> SubjectOut:
        existing = await self._load(subject_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "department_id" in changes:
            await ensure_department(self.store, changes["department_id"])
        if changes:
            changes["updated_at"] = utcnow()
            try:
                record = await self.store.update(SUBJECTS, subject_id, changes)
            except DuplicateKeyError:
                raise _conflict(changes.get("code", existing["code"])) from None
            if not record:
                raise NotFoundError("Cannot find subject")
        else:
            record = existing
        departments = await departments_by_id(self.store, [record])
        return _out(record, departments.get(record["department_id"]))

    async def delete(self, subject_id: str) -> DeleteResult:
        await self._load(subject_id)
        removed = {"attendance": await self.store.delete_where(ATTENDANCE, {"subject_id": subject_id})}
        await self.store.delete(SUBJECTS, subject_id)
        logger.info("Deleted subject %s with dependents %s", subject_id, removed)
        return DeleteResult(message="Deleted Subject", removed=removed)
