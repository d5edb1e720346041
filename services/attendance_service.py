"""
services/attendance_service.py

Write boundary for attendance days: load -> mutate (only while open) ->
attendance_calculator.summarize() -> commit. Also the date-range queries
behind the attendance history and statistics endpoints.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.attendance import AttendanceDay, AttendanceEntry
from models.courses import Course as CourseModel
from schemas.attendance import (
    AttendanceCreate, AttendanceUpdate, CourseAttendanceStats, MarkRequest, StudentAttendanceStats,
)
from schemas.common import Pagination
from services import attendance_calculator
from utils.clock import utcnow
from utils.errors import DuplicateRecordError, NotFoundError

logger = logging.getLogger(__name__)


# ==========================================================
# [common] helpers
# ==========================================================

def default_range(start_date: Optional[date], end_date: Optional[date]):
    """Missing bounds default to Jan 1 of the current year through today."""
    today = date.today()
    return start_date or date(today.year, 1, 1), end_date or today


def _commit(db: Session, day: AttendanceDay) -> AttendanceDay:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateRecordError(
            "Attendance already marked for this date and course",
            code="ATTENDANCE_EXISTS",
        )
    db.refresh(day)
    return day


def _ensure_open(day: AttendanceDay):
    if day.is_locked:
        logger.warning(f"rejected change to locked attendance: attendance_id={day.id}")
    attendance_calculator.ensure_unlocked(day)


# ==========================================================
# [1] read
# ==========================================================

def get_attendance(db: Session, attendance_id: int) -> AttendanceDay:
    day = db.query(AttendanceDay).filter(AttendanceDay.id == attendance_id).first()
    if day is None:
        raise NotFoundError("Attendance record not found", code="ATTENDANCE_NOT_FOUND")
    return day


def list_attendance(db: Session, page: Pagination, course_id: Optional[int] = None,
                    on_date: Optional[date] = None, start_date: Optional[date] = None,
                    end_date: Optional[date] = None):
    query = db.query(AttendanceDay)
    if course_id is not None:
        query = query.filter(AttendanceDay.course_id == course_id)
    if on_date is not None:
        query = query.filter(AttendanceDay.date == on_date)
    # a full range takes precedence over a single date
    if start_date is not None and end_date is not None:
        query = query.filter(AttendanceDay.date.between(start_date, end_date))

    total = query.count()
    rows = (
        query.order_by(AttendanceDay.date.desc(), AttendanceDay.id.desc())
        .offset(page.offset)
        .limit(page.size)
        .all()
    )
    return total, rows


def student_attendance(db: Session, student_id: int, start_date: Optional[date] = None,
                       end_date: Optional[date] = None):
    start, end = default_range(start_date, end_date)
    return (
        db.query(AttendanceDay)
        .join(AttendanceEntry, AttendanceEntry.attendance_id == AttendanceDay.id)
        .filter(AttendanceEntry.student_id == student_id)
        .filter(AttendanceDay.date.between(start, end))
        .order_by(AttendanceDay.date, AttendanceDay.id)
        .distinct()
        .all()
    )


def course_stats(db: Session, course_id: int, start_date: Optional[date] = None,
                 end_date: Optional[date] = None) -> CourseAttendanceStats:
    start, end = default_range(start_date, end_date)
    days = (
        db.query(AttendanceDay)
        .filter(AttendanceDay.course_id == course_id)
        .filter(AttendanceDay.date.between(start, end))
        .all()
    )
    return attendance_calculator.course_attendance_stats(days)


def student_stats(db: Session, student_id: int, start_date: Optional[date] = None,
                  end_date: Optional[date] = None) -> StudentAttendanceStats:
    start, end = default_range(start_date, end_date)
    rows = (
        db.query(AttendanceEntry.status)
        .join(AttendanceDay, AttendanceEntry.attendance_id == AttendanceDay.id)
        .filter(AttendanceEntry.student_id == student_id)
        .filter(AttendanceDay.date.between(start, end))
        .all()
    )
    return attendance_calculator.student_attendance_stats(status for (status,) in rows)


# ==========================================================
# [2] write
# ==========================================================

def create_attendance(db: Session, payload: AttendanceCreate) -> AttendanceDay:
    if db.query(CourseModel).filter(CourseModel.id == payload.course_id).first() is None:
        raise NotFoundError("Course not found", code="COURSE_NOT_FOUND")

    existing = (
        db.query(AttendanceDay)
        .filter(AttendanceDay.date == payload.date, AttendanceDay.course_id == payload.course_id)
        .first()
    )
    if existing is not None:
        raise DuplicateRecordError(
            "Attendance already marked for this date and course",
            code="ATTENDANCE_EXISTS",
        )

    now = utcnow()
    day = AttendanceDay(
        date=payload.date,
        course_id=payload.course_id,
        teacher_id=payload.teacher_id,
        total_students=len(payload.records),
        notes=payload.notes,
        is_locked=False,
    )
    day.records = [
        AttendanceEntry(
            student_id=r.student_id,
            status=r.status.value,
            notes=r.notes,
            time_in=r.time_in,
            time_out=r.time_out,
            marked_by=payload.teacher_id,
            marked_at=now,
        )
        for r in payload.records
    ]
    attendance_calculator.summarize(day)

    db.add(day)
    day = _commit(db, day)
    logger.info(
        f"attendance created: attendance_id={day.id} course_id={day.course_id} date={day.date} "
        f"percentage={day.attendance_percentage}"
    )
    return day


def update_attendance(db: Session, attendance_id: int, payload: AttendanceUpdate) -> AttendanceDay:
    day = get_attendance(db, attendance_id)
    _ensure_open(day)

    if payload.records:
        now = utcnow()
        by_student = {entry.student_id: entry for entry in day.records}
        for change in payload.records:
            entry = by_student.get(change.student_id)
            if entry is None:
                # students outside the roll are ignored
                continue
            entry.status = change.status.value
            if change.notes is not None:
                entry.notes = change.notes
            entry.marked_by = payload.marked_by
            entry.marked_at = now
    if payload.notes is not None:
        day.notes = payload.notes

    attendance_calculator.summarize(day)
    day = _commit(db, day)
    logger.info(f"attendance updated: attendance_id={day.id} percentage={day.attendance_percentage}")
    return day


def mark_attendance(db: Session, attendance_id: int, student_id: int, request: MarkRequest) -> AttendanceDay:
    day = get_attendance(db, attendance_id)
    _ensure_open(day)
    attendance_calculator.mark(day, student_id, request.status, notes=request.notes, marked_by=request.marked_by)
    return _commit(db, day)


def lock_attendance(db: Session, attendance_id: int, actor_id: Optional[int] = None) -> AttendanceDay:
    day = get_attendance(db, attendance_id)
    _ensure_open(day)
    attendance_calculator.lock(day, actor_id)
    day = _commit(db, day)
    logger.info(f"attendance locked: attendance_id={day.id} by={actor_id}")
    return day


def unlock_attendance(db: Session, attendance_id: int) -> AttendanceDay:
    day = get_attendance(db, attendance_id)
    attendance_calculator.unlock(day)
    day = _commit(db, day)
    logger.info(f"attendance unlocked: attendance_id={day.id}")
    return day
