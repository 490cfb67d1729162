"""Attendance listing and bulk marking."""
import logging
from collections.abc import Mapping
from typing import Optional

from attendance_tracker.db import Store
from attendance_tracker.errors import NotFoundError, ValidationError
from attendance_tracker.models import (
    ATTENDANCE_STATUSES,
    DEPARTMENTS,
    STUDENTS,
    SUBJECTS,
    AttendanceOut,
    MarkAttendanceRequest,
    MarkAttendanceResult,
    MarkingStudent,
    StudentRef,
    SubjectRef,
)
from attendance_tracker.models.base import department_ref
from attendance_tracker.services.common import parse_day, utcnow

logger = logging.getLogger(__name__)


def _valid_entry(entry) -> bool:
    if not isinstance(entry, Mapping):
        return False
    student_id = entry.get("studentId")
    if not isinstance(student_id, str) or not student_id.strip():
        return False
    return entry.get("status") in ATTENDANCE_STATUSES


class AttendanceService:
    def __init__(self, store: Store):
        self.store = store

    async def list_records(
        self,
        date: Optional[str] = None,
        subject_id: Optional[str] = None,
        department_id: Optional[str] = None,
        student_id: Optional[str] = None,
    ) -> list[AttendanceOut]:
        """Attendance matching every given filter; `date` matches the whole day."""
        day = parse_day(date) if date else None
        filters = {}
        if subject_id:
            filters["subject_id"] = subject_id
        if department_id:
            filters["department_id"] = department_id
        if student_id:
            filters["student_id"] = student_id
        records = await self.store.find_attendance(filters, day=day)

        students = await self.store.get_many(STUDENTS, {r["student_id"] for r in records})
        subjects = await self.store.get_many(SUBJECTS, {r["subject_id"] for r in records})
        departments = await self.store.get_many(DEPARTMENTS, {r["department_id"] for r in records})

        out = []
        for r in sorted(records, key=lambda r: r["date"]):
            student = students.get(r["student_id"])
            subject = subjects.get(r["subject_id"])
            out.append(
                AttendanceOut(
                    id=r["id"],
                    student=StudentRef(id=student["id"], name=student["name"], roll_number=student["roll_number"])
                    if student
                    else None,
                    subject=SubjectRef(id=subject["id"], name=subject["name"], code=subject["code"])
                    if subject
                    else None,
                    department=department_ref(departments.get(r["department_id"])),
                    date=r["date"],
                    status=r["status"],
                    marked_by=r.get("marked_by"),
                    created_at=r.get("created_at"),
                    updated_at=r.get("updated_at"),
                )
            )
        return out

    async def mark(self, data: MarkAttendanceRequest) -> MarkAttendanceResult:
        """Upsert one record per (student, subject, day).

        Invalid entries are skipped and logged; the batch only fails when every
        entry is invalid. Each upsert stands alone, so concurrent submissions
        for the same key resolve last-writer-wins.
        """
        if not data.date or not data.subject_id or not data.department_id or data.attendance_data is None:
            raise ValidationError(
                "Missing required fields: date, subjectId, departmentId, attendanceData array."
            )
        day = parse_day(data.date)

        entries = data.attendance_data
        by_student: dict[str, str] = {}
        skipped = 0
        for entry in entries:
            if not _valid_entry(entry):
                skipped += 1
                logger.warning("Skipping invalid attendance record: %r", entry)
                continue
            by_student[entry["studentId"].strip()] = entry["status"]

        if not by_student:
            if entries:
                raise ValidationError("No valid attendance data provided.")
            return MarkAttendanceResult(message="No attendance data to process.")

        now = utcnow()
        rows = [
            {
                "student_id": student_id,
                "subject_id": data.subject_id,
                "department_id": data.department_id,
                "date": day,
                "status": status,
                "marked_by": data.marked_by,
                "created_at": now,
                "updated_at": now,
            }
            for student_id, status in by_student.items()
        ]
        summary = await self.store.upsert_attendance(rows)
        message = "Attendance marked successfully."
        if summary.failed:
            message = f"Attendance partially marked: {summary.failed} record(s) failed."
        return MarkAttendanceResult(
            message=message,
            inserted_count=summary.inserted,
            modified_count=summary.modified,
            upserted_count=summary.upserted,
            skipped_count=skipped,
            failed_count=summary.failed,
        )

    async def students_for_marking(
        self, department_id: Optional[str] = None, subject_id: Optional[str] = None
    ) -> list[MarkingStudent]:
        """Students to show on the marking form, by department or by a subject's department."""
        if not department_id and not subject_id:
            raise ValidationError("Either subjectId or departmentId is required.")
        if not department_id:
            subject = await self.store.get(SUBJECTS, subject_id)
            if not subject:
                raise NotFoundError("Cannot find subject")
            department_id = subject["department_id"]
        students = await self.store.find(STUDENTS, {"department_id": department_id})
        return [
            MarkingStudent(id=s["id"], name=s["name"], roll_number=s["roll_number"])
            for s in sorted(students, key=lambda s: s["roll_number"])
        ]
