"""Beanie document models and Pydantic schemas."""
from attendance_tracker.models.base import ApiModel, DeleteResult, DepartmentRef, StudentRef, SubjectRef
from attendance_tracker.models.department import Department, DepartmentCreate, DepartmentOut, DepartmentUpdate
from attendance_tracker.models.subject import Subject, SubjectCreate, SubjectOut, SubjectUpdate
from attendance_tracker.models.student import Student, StudentCreate, StudentOut, StudentUpdate
from attendance_tracker.models.attendance import (
    AttendanceOut,
    AttendanceRecord,
    ABSENT,
    ATTENDANCE_STATUSES,
    AttendanceStatus,
    PRESENT,
    DepartmentStats,
    MarkAttendanceRequest,
    MarkAttendanceResult,
    MarkingStudent,
    OverallStats,
    SubjectStats,
)

DEPARTMENTS = "departments"
SUBJECTS = "subjects"
STUDENTS = "students"
ATTENDANCE = "attendance_records"

# Collection name -> document model, in registration order.
DOCUMENT_MODELS = {
    DEPARTMENTS: Department,
    SUBJECTS: Subject,
    STUDENTS: Student,
    ATTENDANCE: AttendanceRecord,
}

__all__ = [
    "ApiModel",
    "DeleteResult",
    "DepartmentRef",
    "StudentRef",
    "SubjectRef",
    "Department",
    "DepartmentCreate",
    "DepartmentOut",
    "DepartmentUpdate",
    "Subject",
    "SubjectCreate",
    "SubjectOut",
    "SubjectUpdate",
    "Student",
    "StudentCreate",
    "StudentOut",
    "StudentUpdate",
    "AttendanceOut",
    "AttendanceRecord",
    "ABSENT",
    "ATTENDANCE_STATUSES",
    "AttendanceStatus",
    "PRESENT",
    "DepartmentStats",
    "MarkAttendanceRequest",
    "MarkAttendanceResult",
    "MarkingStudent",
    "OverallStats",
    "SubjectStats",
    "DEPARTMENTS",
    "SUBJECTS",
    "STUDENTS",
    "ATTENDANCE",
    "DOCUMENT_MODELS",
]
