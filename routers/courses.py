from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database.db import get_db
from models.attendance import AttendanceDay
from models.courses import Course as CourseModel
from models.grades import Grade
from schemas.courses import Course as CourseSchema, CourseCreate
from utils.errors import DuplicateRecordError, NotFoundError, RecordInUseError

router = APIRouter(prefix="/courses", tags=["courses"])


def _get(db: Session, course_id: int) -> CourseModel:
    course = db.query(CourseModel).filter(CourseModel.id == course_id).first()
    if course is None:
        raise NotFoundError("Course not found", code="COURSE_NOT_FOUND")
    return course


def _commit(db: Session):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateRecordError("Course code already in use", code="COURSE_EXISTS")


# ✅ [CREATE] add a course
@router.post("/", status_code=status.HTTP_201_CREATED)
def create_course(course: CourseCreate, db: Session = Depends(get_db)):
    db_course = CourseModel(**course.model_dump())
    db.add(db_course)
    _commit(db)
    db.refresh(db_course)
    return {
        "success": True,
        "data": CourseSchema.model_validate(db_course).model_dump(),
        "message": "Course created successfully",
    }


# ✅ [READ] all courses
@router.get("/")
def read_courses(db: Session = Depends(get_db)):
    records = db.query(CourseModel).order_by(CourseModel.id).all()
    return {
        "success": True,
        "data": [CourseSchema.model_validate(r).model_dump() for r in records],
    }


# ✅ [READ] one course
@router.get("/{course_id}")
def read_course(course_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": CourseSchema.model_validate(_get(db, course_id)).model_dump()}


# ✅ [UPDATE] replace course details
@router.put("/{course_id}")
def update_course(course_id: int, updated: CourseCreate, db: Session = Depends(get_db)):
    course = _get(db, course_id)
    for key, value in updated.model_dump().items():
        setattr(course, key, value)
    _commit(db)
    db.refresh(course)
    return {
        "success": True,
        "data": CourseSchema.model_validate(course).model_dump(),
        "message": "Course updated successfully",
    }


# ✅ [DELETE] only while no grade or attendance day points at the course
@router.delete("/{course_id}")
def delete_course(course_id: int, db: Session = Depends(get_db)):
    course = _get(db, course_id)
    in_use = (
        db.query(Grade.id).filter(Grade.course_id == course_id).first() is not None
        or db.query(AttendanceDay.id).filter(AttendanceDay.course_id == course_id).first() is not None
    )
    if in_use:
        raise RecordInUseError("Course has grade or attendance records", code="COURSE_IN_USE")
    db.delete(course)
    db.commit()
    return {"success": True, "data": {"course_id": course_id}, "message": "Course deleted successfully"}
