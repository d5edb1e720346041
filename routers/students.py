from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database.db import get_db
from models.attendance import AttendanceEntry
from models.grades import Grade
from models.students import Student as StudentModel
from schemas.students import Student as StudentSchema, StudentCreate
from utils.errors import DuplicateRecordError, NotFoundError, RecordInUseError

router = APIRouter(prefix="/students", tags=["students"])


def _get(db: Session, student_id: int) -> StudentModel:
    student = db.query(StudentModel).filter(StudentModel.id == student_id).first()
    if student is None:
        raise NotFoundError("Student not found", code="STUDENT_NOT_FOUND")
    return student


def _commit(db: Session):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateRecordError("Student code already in use", code="STUDENT_EXISTS")


# ==========================================================
# [1] CRUD
# ==========================================================

# ✅ [CREATE] add a student
@router.post("/", status_code=status.HTTP_201_CREATED)
def create_student(student: StudentCreate, db: Session = Depends(get_db)):
    db_student = StudentModel(**student.model_dump())
    db.add(db_student)
    _commit(db)
    db.refresh(db_student)
    return {
        "success": True,
        "data": StudentSchema.model_validate(db_student).model_dump(),
        "message": "Student created successfully",
    }


# ✅ [READ] all students, optionally filtered by name
@router.get("/")
def read_students(name: Optional[str] = None, db: Session = Depends(get_db)):
    query = db.query(StudentModel)
    if name:
        query = query.filter(or_(StudentModel.first_name.contains(name), StudentModel.last_name.contains(name)))
    records = query.order_by(StudentModel.id).all()
    return {
        "success": True,
        "data": [StudentSchema.model_validate(r).model_dump() for r in records],
    }


# ✅ [READ] one student
@router.get("/{student_id}")
def read_student(student_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": StudentSchema.model_validate(_get(db, student_id)).model_dump()}


# ✅ [UPDATE] replace student details
@router.put("/{student_id}")
def update_student(student_id: int, updated: StudentCreate, db: Session = Depends(get_db)):
    student = _get(db, student_id)
    for key, value in updated.model_dump().items():
        setattr(student, key, value)
    _commit(db)
    db.refresh(student)
    return {
        "success": True,
        "data": StudentSchema.model_validate(student).model_dump(),
        "message": "Student updated successfully",
    }


# ✅ [DELETE] only while no grade or attendance entry points at the student
@router.delete("/{student_id}")
def delete_student(student_id: int, db: Session = Depends(get_db)):
    student = _get(db, student_id)
    in_use = (
        db.query(Grade.id).filter(Grade.student_id == student_id).first() is not None
        or db.query(AttendanceEntry.id).filter(AttendanceEntry.student_id == student_id).first() is not None
    )
    if in_use:
        raise RecordInUseError("Student has grade or attendance records", code="STUDENT_IN_USE")
    db.delete(student)
    db.commit()
    return {"success": True, "data": {"student_id": student_id}, "message": "Student deleted successfully"}
