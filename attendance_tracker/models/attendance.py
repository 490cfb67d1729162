from datetime import datetime
from typing import Any, Literal, Optional

from beanie import Document
from pydantic import Field
from pymongo import ASCENDING, IndexModel

from attendance_tracker.models.base import ApiModel, DepartmentRef, StudentRef, SubjectRef


PRESENT = "Present"
ABSENT = "Absent"
ATTENDANCE_STATUSES = (PRESENT, ABSENT)

AttendanceStatus = Literal["Present", "Absent"]


class AttendanceRecord(Document):
    """One student's status in one subject on one calendar day.

    `date` is always midnight UTC of the day it represents. `department_id` is
    copied from the marking request and is not checked against the student or
    the subject.
    """
    student_id: str
    subject_id: str
    department_id: str
    date: datetime
    status: AttendanceStatus = ABSENT
    marked_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "attendance_records"
        use_state_management = True
        indexes = [
            IndexModel([("date", ASCENDING), ("subject_id", ASCENDING)]),
            IndexModel([("student_id", ASCENDING), ("subject_id", ASCENDING)]),
            IndexModel([("date", ASCENDING), ("department_id", ASCENDING), ("subject_id", ASCENDING)]),
            IndexModel(
                [("student_id", ASCENDING), ("subject_id", ASCENDING), ("date", ASCENDING)],
                unique=True,
            ),
        ]


class MarkAttendanceRequest(ApiModel):
    """Bulk marking payload. Entries are validated one by one by the service."""
    date: Optional[str] = None
    subject_id: Optional[str] = None
    department_id: Optional[str] = None
    marked_by: Optional[str] = None
    attendance_data: Optional[list[Any]] = None


class MarkAttendanceResult(ApiModel):
    message: str
    inserted_count: int = 0
    modified_count: int = 0
    upserted_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0


class AttendanceOut(ApiModel):
    id: str
    student: Optional[StudentRef] = None
    subject: Optional[SubjectRef] = None
    department: Optional[DepartmentRef] = None
    date: datetime
    status: AttendanceStatus
    marked_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MarkingStudent(ApiModel):
    id: str
    name: str
    roll_number: str


class OverallStats(ApiModel):
    present: int = Field(default=0, alias="Present")
    absent: int = Field(default=0, alias="Absent")


class DepartmentStats(ApiModel):
    department_id: str
    department_name: str
    present_count: int = 0
    absent_count: int = 0


class SubjectStats(ApiModel):
    subject_id: str
    subject_name: str
    subject_code: str
    department_name: Optional[str] = None
    present_count: int = 0
    absent_count: int = 0
