"""Subject CRUD, optionally scoped to a department."""
from typing import List, Optional

from fastapi import APIRouter, Query

from attendance_tracker.api.deps import Subjects
from attendance_tracker.models import DeleteResult, SubjectCreate, SubjectOut, SubjectUpdate

router = APIRouter()


@router.get("", response_model=List[SubjectOut])
async def list_subjects(service: Subjects, department_id: Optional[str] = Query(None, alias="departmentId")):
    return await service.list_all(department_id)


@router.post("", response_model=SubjectOut, status_code=201)
async def create_subject(data: SubjectCreate, service: Subjects):
    return await service.create(data)


@router.get("/{subject_id}", response_model=SubjectOut)
async def get_subject(subject_id: str, service: Subjects):
    return await service.get(subject_id)


@router.patch("/{subject_id}", response_model=SubjectOut)
async def update_subject(subject_id: str, data: SubjectUpdate, service: Subjects):
    return await service.update(subject_id, data)


@router.delete("/{subject_id}", response_model=DeleteResult)
async def delete_subject(subject_id: str, service: Subjects):
    return await service.delete(subject_id)
