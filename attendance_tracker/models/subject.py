"""Subjects taught within a department. Code is unique per department."""
from datetime import datetime
from typing import Optional

from beanie import Document, Indexed
from pydantic import AliasChoices, Field
from pymongo import ASCENDING, IndexModel

from attendance_tracker.models.base import ApiModel, DepartmentRef


class Subject(Document):
    name: str
    code: str
    department_id: Indexed(str)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "subjects"
        use_state_management = True
        indexes = [
            IndexModel([("code", ASCENDING), ("department_id", ASCENDING)], unique=True),
        ]


class SubjectCreate(ApiModel):
    name: str = Field(min_length=1)
    code: str = Field(min_length=1)
    department_id: str = Field(
        min_length=1, validation_alias=AliasChoices("department", "departmentId", "department_id")
    )


class SubjectUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    code: Optional[str] = Field(default=None, min_length=1)
    department_id: Optional[str] = Field(
        default=None,
        min_length=1,
        validation_alias=AliasChoices("department", "departmentId", "department_id"),
    )


class SubjectOut(ApiModel):
    id: str
    name: str
    code: str
    department: Optional[DepartmentRef] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
