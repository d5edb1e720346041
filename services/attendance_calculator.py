"""
services/attendance_calculator.py

Roll-up and lock state for one attendance day.

Works on anything shaped like models.attendance.AttendanceDay: the day exposes
records (each with student_id/status/notes/marked_by/marked_at), the count
fields, attendance_percentage, and is_locked/locked_by/locked_at.

States: Open (is_locked False) and Locked. lock() moves Open -> Locked and
records who and when; unlock() moves back and clears both. Every mutation
below checks ensure_unlocked() first.
"""

from datetime import datetime
from typing import Iterable, Optional

from schemas.attendance import (
    AttendanceStatus, AttendanceTally, CourseAttendanceStats, StudentAttendanceStats,
)
from utils.clock import utcnow
from utils.errors import NotFoundError, RecordLockedError, ValidationError


def _status(value) -> AttendanceStatus:
    try:
        return AttendanceStatus(value)
    except ValueError:
        raise ValidationError(f"unknown attendance status: {value!r}")


def tally(records: Iterable) -> AttendanceTally:
    counts = AttendanceTally()
    for record in records:
        status = _status(record.status)
        setattr(counts, status.value, getattr(counts, status.value) + 1)
    return counts


def attendance_percentage(counts: AttendanceTally) -> float:
    """(present + late) / (present + absent + late + excused) × 100, 2 dp; suspended is left out."""
    marked = counts.present + counts.absent + counts.late + counts.excused
    if marked == 0:
        return 0.0
    return round((counts.present + counts.late) / marked * 100, 2)


def summarize(day) -> AttendanceTally:
    """Overwrite the day's derived counts and percentage from its records."""
    counts = tally(day.records)
    percentage = attendance_percentage(counts)
    day.present_count = counts.present
    day.absent_count = counts.absent
    day.late_count = counts.late
    day.excused_count = counts.excused
    day.suspended_count = counts.suspended
    day.attendance_percentage = percentage
    return counts


# ==========================================================
# Lock state machine
# ==========================================================

def ensure_unlocked(day):
    if day.is_locked:
        raise RecordLockedError(
            "Attendance record is locked and cannot be modified",
            code="ATTENDANCE_LOCKED",
        )


def lock(day, actor_id: Optional[int], at: Optional[datetime] = None):
    ensure_unlocked(day)
    day.is_locked = True
    day.locked_by = actor_id
    day.locked_at = at or utcnow()


def unlock(day):
    # unlocking an open day leaves it open
    day.is_locked = False
    day.locked_by = None
    day.locked_at = None


def mark(day, student_id: int, status, notes: Optional[str] = None,
         marked_by: Optional[int] = None, at: Optional[datetime] = None):
    """Set one student's status on an open day and re-summarize."""
    ensure_unlocked(day)
    status = _status(status)
    for record in day.records:
        if record.student_id == student_id:
            record.status = status.value
            record.notes = notes
            record.marked_by = marked_by
            record.marked_at = at or utcnow()
            summarize(day)
            return record
    raise NotFoundError(
        f"Student {student_id} not found in attendance records",
        code="STUDENT_NOT_IN_ROLL",
    )


# ==========================================================
# Cross-day statistics
# ==========================================================

def course_attendance_stats(days: Iterable) -> CourseAttendanceStats:
    days = list(days)
    if not days:
        return CourseAttendanceStats()
    return CourseAttendanceStats(
        total_days=len(days),
        avg_attendance=round(sum(d.attendance_percentage for d in days) / len(days), 2),
        total_present=sum(d.present_count for d in days),
        total_absent=sum(d.absent_count for d in days),
        total_late=sum(d.late_count for d in days),
        total_excused=sum(d.excused_count for d in days),
    )


def student_attendance_stats(statuses: Iterable) -> StudentAttendanceStats:
    """
    One student's statuses across days. Unlike a single day's percentage, every
    marked day (excused and suspended included) counts in the denominator.
    """
    stats = StudentAttendanceStats()
    for value in statuses:
        status = _status(value)
        stats.total_days += 1
        if status is AttendanceStatus.PRESENT:
            stats.present_days += 1
        elif status is AttendanceStatus.ABSENT:
            stats.absent_days += 1
        elif status is AttendanceStatus.LATE:
            stats.late_days += 1
        elif status is AttendanceStatus.EXCUSED:
            stats.excused_days += 1
    if stats.total_days:
        stats.attendance_percentage = round(
            (stats.present_days + stats.late_days) / stats.total_days * 100, 2
        )
    return stats
