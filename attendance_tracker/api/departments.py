"""Departments - name only."""
from typing import List

from fastapi import APIRouter

from attendance_tracker.api.deps import Departments
from attendance_tracker.models import DeleteResult, DepartmentCreate, DepartmentOut, DepartmentUpdate

router = APIRouter()


@router.get("", response_model=List[DepartmentOut])
async def list_departments(service: Departments):
    return await service.list_all()


@router.post("", response_model=DepartmentOut, status_code=201)
async def create_department(data: DepartmentCreate, service: Departments):
    return await service.create(data)


@router.get("/{department_id}", response_model=DepartmentOut)
async def get_department(department_id: str, service: Departments):
    return await service.get(department_id)


@router.patch("/{department_id}", response_model=DepartmentOut)
async def update_department(department_id: str, data: DepartmentUpdate, service: Departments):
    return await service.update(department_id, data)


@router.delete("/{department_id}", response_model=DeleteResult)
async def delete_department(department_id: str, service: Departments):
    """Delete a department together with its subjects, students and attendance."""
    return await service.delete(department_id)
