from typing import List, Optional

from fastapi import APIRouter, Query, Response, status

from attendance_tracker.api.deps import Attendance, Reporter
from attendance_tracker.models import (
    AttendanceOut,
    DepartmentStats,
    MarkAttendanceRequest,
    MarkAttendanceResult,
    MarkingStudent,
    OverallStats,
    SubjectStats,
)

router = APIRouter()


@router.get("", response_model=List[AttendanceOut])
async def list_attendance(
    service: Attendance,
    date: Optional[str] = Query(None),
    subject_id: Optional[str] = Query(None, alias="subjectId"),
    department_id: Optional[str] = Query(None, alias="departmentId"),
    student_id: Optional[str] = Query(None, alias="studentId"),
):
    """Attendance records with student, subject and department expanded."""
    return await service.list_records(
        date=date, subject_id=subject_id, department_id=department_id, student_id=student_id
    )


@router.post("/mark", response_model=MarkAttendanceResult, status_code=201)
async def mark_attendance(data: MarkAttendanceRequest, response: Response, service: Attendance):
    """Mark attendance for many students in one subject on one day."""
    result = await service.mark(data)
    if not data.attendance_data:
        response.status_code = status.HTTP_200_OK
    return result


@router.get("/students-for-marking", response_model=List[MarkingStudent])
async def students_for_marking(
    service: Attendance,
    department_id: Optional[str] = Query(None, alias="departmentId"),
    subject_id: Optional[str] = Query(None, alias="subjectId"),
):
    return await service.students_for_marking(department_id=department_id, subject_id=subject_id)


# --- Dashboard stats ---

@router.get("/stats/overall", response_model=OverallStats)
async def overall_stats(reporter: Reporter):
    return await reporter.overall()


@router.get("/stats/by-department", response_model=List[DepartmentStats])
async def stats_by_department(reporter: Reporter):
    return await reporter.by_department()


@router.get("/stats/by-subject", response_model=List[SubjectStats])
async def stats_by_subject(reporter: Reporter, department_id: Optional[str] = Query(None, alias="departmentId")):
    return await reporter.by_subject(department_id)
