from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.pagination import pagination_params
from schemas.common import Pagination, make_meta
from schemas.grades import (
    GradeCreate, GradeOut, GradeUpdate, PublishRequest, ScoreComponent, Semester,
)
from services import grade_service

router = APIRouter(prefix="/grades", tags=["grades"])


def _out(row) -> dict:
    return GradeOut.model_validate(row).model_dump(mode="json")


# ==========================================================
# [1] list / static lookups
# ==========================================================

# ✅ [READ] grade records with filters + paging
@router.get("/")
def read_grades(
    course_id: Optional[int] = None,
    student_id: Optional[int] = None,
    academic_year: Optional[str] = None,
    semester: Optional[Semester] = None,
    page: Pagination = Depends(pagination_params),
    db: Session = Depends(get_db),
):
    total, rows = grade_service.list_grades(
        db, page,
        course_id=course_id, student_id=student_id,
        academic_year=academic_year, semester=semester,
    )
    return {
        "success": True,
        "data": [_out(r) for r in rows],
        "meta": make_meta(total, page.page, page.size),
    }


# ✅ [READ] one student's grades
@router.get("/student/{student_id}")
def read_student_grades(
    student_id: int,
    academic_year: Optional[str] = None,
    semester: Optional[Semester] = None,
    db: Session = Depends(get_db),
):
    rows = grade_service.student_grades(db, student_id, academic_year, semester)
    return {"success": True, "data": [_out(r) for r in rows]}


# ✅ [READ] one course's grades
@router.get("/course/{course_id}")
def read_course_grades(
    course_id: int,
    academic_year: Optional[str] = None,
    semester: Optional[Semester] = None,
    db: Session = Depends(get_db),
):
    rows = grade_service.course_grades(db, course_id, academic_year, semester)
    return {"success": True, "data": [_out(r) for r in rows]}


# ✅ [STATS] course averages and letter distribution
@router.get("/course/{course_id}/stats")
def read_course_grade_stats(
    course_id: int,
    academic_year: Optional[str] = None,
    semester: Optional[Semester] = None,
    db: Session = Depends(get_db),
):
    stats = grade_service.course_stats(db, course_id, academic_year, semester)
    return {"success": True, "data": stats.model_dump()}


# ==========================================================
# [2] single record
# ==========================================================

# ✅ [READ] one grade record
@router.get("/{grade_id}")
def read_grade(grade_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": _out(grade_service.get_grade(db, grade_id))}


# ✅ [CREATE] new grade record
@router.post("/", status_code=status.HTTP_201_CREATED)
def create_grade(payload: GradeCreate, db: Session = Depends(get_db)):
    row = grade_service.create_grade(db, payload)
    return {"success": True, "data": _out(row), "message": "Grade record created successfully"}


# ✅ [UPDATE] scores / comments (rejected once published)
@router.put("/{grade_id}")
def update_grade(grade_id: int, payload: GradeUpdate, db: Session = Depends(get_db)):
    row = grade_service.update_grade(db, grade_id, payload)
    return {"success": True, "data": _out(row), "message": "Grade updated successfully"}


# ✅ [PUBLISH]
@router.post("/{grade_id}/publish")
def publish_grade(grade_id: int, payload: Optional[PublishRequest] = None, db: Session = Depends(get_db)):
    actor_id = payload.actor_id if payload else None
    row = grade_service.publish_grade(db, grade_id, actor_id)
    return {"success": True, "data": _out(row), "message": "Grades published successfully"}


# ✅ [APPEND] one assignment
@router.post("/{grade_id}/assignments")
def add_assignment(grade_id: int, payload: ScoreComponent, db: Session = Depends(get_db)):
    row = grade_service.add_assignment(db, grade_id, payload)
    return {"success": True, "data": _out(row), "message": "Assignment added successfully"}


# ✅ [APPEND] one quiz
@router.post("/{grade_id}/quizzes")
def add_quiz(grade_id: int, payload: ScoreComponent, db: Session = Depends(get_db)):
    row = grade_service.add_quiz(db, grade_id, payload)
    return {"success": True, "data": _out(row), "message": "Quiz added successfully"}
