from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.pagination import pagination_params
from schemas.attendance import (
    AttendanceCreate, AttendanceDayOut, AttendanceUpdate, LockRequest, MarkRequest,
)
from schemas.common import Pagination, make_meta
from services import attendance_service

router = APIRouter(prefix="/attendance", tags=["attendance"])


def _out(day) -> dict:
    return AttendanceDayOut.model_validate(day).model_dump(mode="json")


# ==========================================================
# [1] list / static lookups
# ==========================================================

# ✅ [READ] attendance days with filters + paging
@router.get("/")
def read_attendance_list(
    course_id: Optional[int] = None,
    on_date: Optional[date] = Query(None, alias="date", description="single day, e.g. 2025-09-17"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: Pagination = Depends(pagination_params),
    db: Session = Depends(get_db),
):
    total, rows = attendance_service.list_attendance(
        db, page,
        course_id=course_id, on_date=on_date,
        start_date=start_date, end_date=end_date,
    )
    return {
        "success": True,
        "data": [_out(r) for r in rows],
        "meta": make_meta(total, page.page, page.size),
    }


# ✅ [READ] days a student was on the roll
@router.get("/student/{student_id}")
def read_student_attendance(
    student_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    days = attendance_service.student_attendance(db, student_id, start_date, end_date)
    return {"success": True, "data": [_out(d) for d in days]}


# ✅ [STATS] one student across days
@router.get("/student/{student_id}/stats")
def read_student_attendance_stats(
    student_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    stats = attendance_service.student_stats(db, student_id, start_date, end_date)
    return {"success": True, "data": stats.model_dump()}


# ✅ [STATS] one course across days
@router.get("/course/{course_id}/stats")
def read_course_attendance_stats(
    course_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    stats = attendance_service.course_stats(db, course_id, start_date, end_date)
    return {"success": True, "data": stats.model_dump()}


# ==========================================================
# [2] single day
# ==========================================================

# ✅ [READ] one attendance day
@router.get("/{attendance_id}")
def read_attendance(attendance_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": _out(attendance_service.get_attendance(db, attendance_id))}


# ✅ [CREATE] take the roll
@router.post("/", status_code=status.HTTP_201_CREATED)
def create_attendance(payload: AttendanceCreate, db: Session = Depends(get_db)):
    day = attendance_service.create_attendance(db, payload)
    return {"success": True, "data": _out(day), "message": "Attendance marked successfully"}


# ✅ [UPDATE] statuses / notes (rejected while locked)
@router.put("/{attendance_id}")
def update_attendance(attendance_id: int, payload: AttendanceUpdate, db: Session = Depends(get_db)):
    day = attendance_service.update_attendance(db, attendance_id, payload)
    return {"success": True, "data": _out(day), "message": "Attendance updated successfully"}


# ✅ [UPDATE] one student's status
@router.patch("/{attendance_id}/records/{student_id}")
def mark_attendance(attendance_id: int, student_id: int, payload: MarkRequest, db: Session = Depends(get_db)):
    day = attendance_service.mark_attendance(db, attendance_id, student_id, payload)
    return {"success": True, "data": _out(day), "message": "Attendance marked successfully"}


# ✅ [LOCK]
@router.post("/{attendance_id}/lock")
def lock_attendance(attendance_id: int, payload: Optional[LockRequest] = None, db: Session = Depends(get_db)):
    actor_id = payload.actor_id if payload else None
    day = attendance_service.lock_attendance(db, attendance_id, actor_id)
    return {"success": True, "data": _out(day), "message": "Attendance record locked successfully"}


# ✅ [UNLOCK]
@router.post("/{attendance_id}/unlock")
def unlock_attendance(attendance_id: int, db: Session = Depends(get_db)):
    day = attendance_service.unlock_attendance(db, attendance_id)
    return {"success": True, "data": _out(day), "message": "Attendance record unlocked successfully"}
