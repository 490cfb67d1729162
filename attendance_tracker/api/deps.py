"""Shared dependencies: the store held by the app and the services built on it."""
from typing import Annotated

from fastapi import Depends, Request

from attendance_tracker.db import Store
from attendance_tracker.services.attendance import AttendanceService
from attendance_tracker.services.departments import DepartmentService
from attendance_tracker.services.reports import AttendanceReporter
from attendance_tracker.services.students import StudentService
from attendance_tracker.services.subjects import SubjectService


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_department_service(store: Annotated[Store, Depends(get_store)]) -> DepartmentService:
    return DepartmentService(store)


def get_subject_service(store: Annotated[Store, Depends(get_store)]) -> SubjectService:
    return SubjectService(store)


def get_student_service(store: Annotated[Store, Depends(get_store)]) -> StudentService:
    return StudentService(store)


def get_attendance_service(store: Annotated[Store, Depends(get_store)]) -> AttendanceService:
    return AttendanceService(store)


def get_reporter(store: Annotated[Store, Depends(get_store)]) -> AttendanceReporter:
    return AttendanceReporter(store)


# Type aliases for route injection
Departments = Annotated[DepartmentService, Depends(get_department_service)]
Subjects = Annotated[SubjectService, Depends(get_subject_service)]
Students = Annotated[StudentService, Depends(get_student_service)]
Attendance = Annotated[AttendanceService, Depends(get_attendance_service)]
Reporter = Annotated[AttendanceReporter, Depends(get_reporter)]
