"""Shared Pydantic configuration for API payloads (camelCase on the wire)."""
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


class DepartmentRef(ApiModel):
    """Expanded department reference."""
    id: str
    name: str


class SubjectRef(ApiModel):
    id: str
    name: str
    code: str


class StudentRef(ApiModel):
    id: str
    name: str
    roll_number: str


class DeleteResult(ApiModel):
    message: str
    removed: dict[str, int] = {}


def department_ref(department: Optional[dict]) -> Optional[DepartmentRef]:
    if not department:
        return None
    return DepartmentRef(id=department["id"], name=department["name"])
