"""Dashboard aggregations over attendance records.

Each report has the store count records per (key, status), attaches display
names with one lookup and tallies present/absent per key.
"""
from collections import Counter
from typing import Optional

from attendance_tracker.db import Store
from attendance_tracker.models import (
    ABSENT,
    DEPARTMENTS,
    PRESENT,
    SUBJECTS,
    DepartmentStats,
    OverallStats,
    SubjectStats,
)


def _tally(grouped: dict[tuple, int]) -> dict[str, Counter]:
    counts: dict[str, Counter] = {}
    for (key, status), count in grouped.items():
        counts.setdefault(key, Counter())[status] += count
    return counts


class AttendanceReporter:
    def __init__(self, store: Store):
        self.store = store

    async def overall(self) -> OverallStats:
        counts = Counter()
        for (_, status), count in (await self.store.count_attendance()).items():
            counts[status] += count
        return OverallStats(present=counts[PRESENT], absent=counts[ABSENT])

    async def by_department(self) -> list[DepartmentStats]:
        counts = _tally(await self.store.count_attendance("department_id"))
        departments = await self.store.get_many(DEPARTMENTS, counts)
        stats = [
            DepartmentStats(
                department_id=department_id,
                department_name=departments[department_id]["name"],
                present_count=tally[PRESENT],
                absent_count=tally[ABSENT],
            )
            for department_id, tally in counts.items()
            # records of deleted departments have nothing to join to
            if department_id in departments
        ]
        return sorted(stats, key=lambda s: s.department_name)

    async def by_subject(self, department_id: Optional[str] = None) -> list[SubjectStats]:
        filters = {"department_id": department_id} if department_id else {}
        counts = _tally(await self.store.count_attendance("subject_id", filters))
        subjects = await self.store.get_many(SUBJECTS, counts)
        departments = await self.store.get_many(DEPARTMENTS, {s["department_id"] for s in subjects.values()})

        stats = []
        for subject_id, tally in counts.items():
            subject = subjects.get(subject_id)
            if not subject:
                continue
            department = departments.get(subject["department_id"])
            stats.append(
                SubjectStats(
                    subject_id=subject_id,
                    subject_name=subject["name"],
                    subject_code=subject["code"],
                    department_name=department["name"] if department else None,
                    present_count=tally[PRESENT],
                    absent_count=tally[ABSENT],
                )
            )
        # null department names sort first
        return sorted(
            stats,
            key=lambda s: (s.department_name is not None, s.department_name or "", s.subject_name),
        )
