"""Students belong to one department; roll numbers are unique institution-wide."""
from datetime import datetime
from typing import Optional

from beanie import Document, Indexed
from pydantic import AliasChoices, Field

from attendance_tracker.models.base import ApiModel, DepartmentRef


class Student(Document):
    name: str
    roll_number: Indexed(str, unique=True)
    department_id: Indexed(str)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "students"
        use_state_management = True


class StudentCreate(ApiModel):
    name: str = Field(min_length=1)
    roll_number: str = Field(min_length=1)
    department_id: str = Field(
        min_length=1, validation_alias=AliasChoices("department", "departmentId", "department_id")
    )


class StudentUpdate(ApiModel):
    """All fields optional for PATCH."""
    name: Optional[str] = Field(default=None, min_length=1)
    roll_number: Optional[str] = Field(default=None, min_length=1)
    department_id: Optional[str] = Field(
        default=None,
        min_length=1,
        validation_alias=AliasChoices("department", "departmentId", "department_id"),
    )


class StudentOut(ApiModel):
    id: str
    name: str
    roll_number: str
    department: Optional[DepartmentRef] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
