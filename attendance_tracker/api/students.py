"""Student CRUD, optionally scoped to a department."""
from typing import List, Optional

from fastapi import APIRouter, Query

from attendance_tracker.api.deps import Students
from attendance_tracker.models import DeleteResult, StudentCreate, StudentOut, StudentUpdate

router = APIRouter()


@router.get("", response_model=List[StudentOut])
async def list_students(service: Students, department_id: Optional[str] = Query(None, alias="departmentId")):
    return await service.list_all(department_id)


@router.post("", response_model=StudentOut, status_code=201)
async def create_student(data: StudentCreate, service: Students):
    return await service.create(data)


@router.get("/{student_id}", response_model=StudentOut)
async def get_student(student_id: str, service: Students):
    return await service.get(student_id)


@router.patch("/{student_id}", response_model=StudentOut)
async def update_student(student_id: str, data: StudentUpdate, service: Students):
    return await service.update(student_id, data)


@router.delete("/{student_id}", response_model=DeleteResult)
async def delete_student(student_id: str, service: Students):
    return await service.delete(student_id)
