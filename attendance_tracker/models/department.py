"""Departments: top-level grouping for subjects and students."""
from datetime import datetime
from typing import Optional

from beanie import Document, Indexed
from pydantic import Field

from attendance_tracker.models.base import ApiModel


class Department(Document):
    name: Indexed(str, unique=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "departments"
        use_state_management = True


class DepartmentCreate(ApiModel):
    name: str = Field(min_length=1)


class DepartmentUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)


class DepartmentOut(ApiModel):
    id: str
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
