"""
services/grade_service.py

Write boundary for grade records. Every path that persists a Grade row goes
through _save(), which runs grade_calculator.recompute() before the row is
touched and commits the components and the final grade together.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config.settings import settings
from models.courses import Course as CourseModel
from models.grades import Grade as GradeModel
from models.students import Student as StudentModel
from schemas.common import Pagination
from schemas.grades import (
    FinalGrade, FixedComponent, FixedComponentPatch, GradeCreate, GradeRecord, GradeStats,
    GradeUpdate, ScoreComponent, Semester,
)
from services import grade_calculator
from utils.clock import utcnow
from utils.errors import DuplicateRecordError, NotFoundError, RecordLockedError, ValidationError

logger = logging.getLogger(__name__)


# ==========================================================
# [common] helpers
# ==========================================================

def _semester(value) -> Optional[str]:
    return None if value is None else Semester(value).value


def _dump(component) -> Optional[dict]:
    return None if component is None else component.model_dump(mode="json")


def _save(db: Session, row: GradeModel, record: GradeRecord, **fields) -> GradeModel:
    final = grade_calculator.recompute(
        record,
        weights=settings.GRADE_WEIGHTS,
        blend_mode=settings.GRADE_BLEND_MODE,
    )

    row.assignments = [c.model_dump(mode="json") for c in record.assignments]
    row.quizzes = [c.model_dump(mode="json") for c in record.quizzes]
    row.midterm = _dump(record.midterm)
    row.final = _dump(record.final)
    row.participation = _dump(record.participation)
    row.attendance_percentage = record.attendance_percentage
    row.final_percentage = final.percentage
    row.letter_grade = final.letter_grade.value
    row.gpa = final.gpa
    row.last_updated = utcnow()
    for key, value in fields.items():
        setattr(row, key, value)

    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateRecordError(
            "Grade record already exists for this student, course, and semester",
            code="GRADE_EXISTS",
        )
    db.refresh(row)
    return row


def _ensure_editable(row: GradeModel):
    if row.is_published:
        logger.warning(f"rejected change to published grade: grade_id={row.id}")
        raise RecordLockedError("Cannot modify published grades", code="GRADE_PUBLISHED")


def _merge(current: Optional[FixedComponent], patch: Optional[FixedComponentPatch],
           label: str, default_max: Optional[float] = None) -> Optional[FixedComponent]:
    if patch is None:
        return current
    data = current.model_dump() if current is not None else {}
    data.update(patch.model_dump(exclude_unset=True))
    if data.get("max_score") is None:
        if default_max is None:
            raise ValidationError(f"{label}.max_score is required")
        data["max_score"] = default_max
    return FixedComponent(**data)


# ==========================================================
# [1] read
# ==========================================================

def get_grade(db: Session, grade_id: int) -> GradeModel:
    row = db.query(GradeModel).filter(GradeModel.id == grade_id).first()
    if row is None:
        raise NotFoundError("Grade record not found", code="GRADE_NOT_FOUND")
    return row


def list_grades(db: Session, page: Pagination, course_id: Optional[int] = None,
                student_id: Optional[int] = None, academic_year: Optional[str] = None,
                semester=None):
    query = db.query(GradeModel)
    if course_id is not None:
        query = query.filter(GradeModel.course_id == course_id)
    if student_id is not None:
        query = query.filter(GradeModel.student_id == student_id)
    if academic_year:
        query = query.filter(GradeModel.academic_year == academic_year)
    if semester is not None:
        query = query.filter(GradeModel.semester == _semester(semester))

    total = query.count()
    rows = (
        query.order_by(GradeModel.created_at.desc(), GradeModel.id.desc())
        .offset(page.offset)
        .limit(page.size)
        .all()
    )
    return total, rows


def _term_query(db: Session, academic_year, semester):
    query = db.query(GradeModel)
    if academic_year:
        query = query.filter(GradeModel.academic_year == academic_year)
    if semester is not None:
        query = query.filter(GradeModel.semester == _semester(semester))
    return query


def student_grades(db: Session, student_id: int, academic_year: Optional[str] = None, semester=None):
    return (
        _term_query(db, academic_year, semester)
        .filter(GradeModel.student_id == student_id)
        .order_by(GradeModel.id)
        .all()
    )


def course_grades(db: Session, course_id: int, academic_year: Optional[str] = None, semester=None):
    return (
        _term_query(db, academic_year, semester)
        .filter(GradeModel.course_id == course_id)
        .order_by(GradeModel.id)
        .all()
    )


def course_stats(db: Session, course_id: int, academic_year: Optional[str] = None, semester=None) -> GradeStats:
    rows = course_grades(db, course_id, academic_year, semester)
    return grade_calculator.course_grade_stats(
        FinalGrade.model_validate(r.final_grade) if r.final_grade else None for r in rows
    )


# ==========================================================
# [2] write
# ==========================================================

def create_grade(db: Session, payload: GradeCreate) -> GradeModel:
    if db.query(StudentModel).filter(StudentModel.id == payload.student_id).first() is None:
        raise NotFoundError("Student not found", code="STUDENT_NOT_FOUND")
    if db.query(CourseModel).filter(CourseModel.id == payload.course_id).first() is None:
        raise NotFoundError("Course not found", code="COURSE_NOT_FOUND")

    semester = payload.semester.value
    existing = (
        db.query(GradeModel)
        .filter(
            GradeModel.student_id == payload.student_id,
            GradeModel.course_id == payload.course_id,
            GradeModel.academic_year == payload.academic_year,
            GradeModel.semester == semester,
        )
        .first()
    )
    if existing is not None:
        raise DuplicateRecordError(
            "Grade record already exists for this student, course, and semester",
            code="GRADE_EXISTS",
        )

    record = GradeRecord(
        assignments=payload.assignments,
        quizzes=payload.quizzes,
        midterm=payload.midterm,
        final=payload.final,
        participation=payload.participation,
        attendance_percentage=payload.attendance_percentage,
    )
    row = GradeModel(
        student_id=payload.student_id,
        course_id=payload.course_id,
        teacher_id=payload.teacher_id,
        academic_year=payload.academic_year,
        semester=semester,
        comments=payload.comments,
        is_published=False,
    )
    row = _save(db, row, record)
    logger.info(
        f"grade created: grade_id={row.id} student_id={row.student_id} course_id={row.course_id} "
        f"letter={row.letter_grade}"
    )
    return row


def update_grade(db: Session, grade_id: int, payload: GradeUpdate) -> GradeModel:
    row = get_grade(db, grade_id)
    _ensure_editable(row)

    record = GradeRecord.model_validate(row)
    if payload.assignments is not None:
        record.assignments = payload.assignments
    if payload.quizzes is not None:
        record.quizzes = payload.quizzes
    record.midterm = _merge(record.midterm, payload.midterm, "midterm")
    record.final = _merge(record.final, payload.final, "final")
    record.participation = _merge(record.participation, payload.participation, "participation", default_max=100)
    if payload.attendance_percentage is not None:
        record.attendance_percentage = payload.attendance_percentage

    fields = {}
    if payload.comments is not None:
        fields["comments"] = payload.comments
    row = _save(db, row, record, **fields)
    logger.info(f"grade updated: grade_id={row.id} letter={row.letter_grade}")
    return row


def _add_component(db: Session, grade_id: int, category: str, component: ScoreComponent) -> GradeModel:
    row = get_grade(db, grade_id)
    _ensure_editable(row)

    if component.graded_at is None:
        component = component.model_copy(update={"graded_at": utcnow()})
    record = GradeRecord.model_validate(row)
    getattr(record, category).append(component)

    row = _save(db, row, record)
    logger.info(f"{category} item added: grade_id={row.id} letter={row.letter_grade}")
    return row


def add_assignment(db: Session, grade_id: int, component: ScoreComponent) -> GradeModel:
    return _add_component(db, grade_id, "assignments", component)


def add_quiz(db: Session, grade_id: int, component: ScoreComponent) -> GradeModel:
    return _add_component(db, grade_id, "quizzes", component)


def publish_grade(db: Session, grade_id: int, actor_id: Optional[int] = None) -> GradeModel:
    row = get_grade(db, grade_id)
    if row.is_published:
        return row

    row = _save(
        db, row, GradeRecord.model_validate(row),
        is_published=True,
        published_at=utcnow(),
        published_by=actor_id,
    )
    logger.info(f"grade published: grade_id={row.id} by={actor_id}")
    return row
