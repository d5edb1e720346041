"""
CSV -> grade records.

One row per scored item:
    student_id,course_id,academic_year,semester,category,title,max_score,score,weight
category is assignment / quiz / midterm / final / participation. Rows sharing
(student_id, course_id, academic_year, semester) become one grade record,
created through services.grade_service so the final grade is computed on save.
"""

import csv
import logging
import sys
from collections import OrderedDict

from sqlalchemy.orm import Session

from database.db import SessionLocal, init_db
from schemas.grades import FixedComponent, GradeCreate, ScoreComponent
from services import grade_service
from utils.errors import DomainError, ValidationError

logger = logging.getLogger(__name__)

CSV_PATH = "data/grades.csv"

FIXED_CATEGORIES = ("midterm", "final", "participation")


def _optional_float(value):
    value = (value or "").strip()
    return float(value) if value else None


def _group_rows(reader):
    """Returns (groups, bad_rows); a row whose key does not parse is logged and left out."""
    groups = OrderedDict()
    bad_rows = 0
    for line, row in enumerate(reader, start=2):
        try:
            key = (
                int(row["student_id"]),
                int(row["course_id"]),
                (row["academic_year"] or "").strip(),
                (row["semester"] or "").strip(),
            )
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning(f"skipped grade row {line}: {exc}")
            bad_rows += 1
            continue
        groups.setdefault(key, []).append(row)
    return groups, bad_rows


def _payload(key, rows) -> GradeCreate:
    student_id, course_id, academic_year, semester = key
    data = {"assignments": [], "quizzes": []}
    for row in rows:
        category = (row["category"] or "").strip().lower()
        if category in ("assignment", "quiz"):
            weight = _optional_float(row.get("weight"))
            data["assignments" if category == "assignment" else "quizzes"].append(ScoreComponent(
                title=row.get("title") or None,
                max_score=float(row["max_score"]),
                score=float(row["score"]),
                weight=1 if weight is None else weight,
            ))
        elif category in FIXED_CATEGORIES:
            data[category] = FixedComponent(
                max_score=float(row["max_score"]),
                score=_optional_float(row.get("score")),
            )
        else:
            raise ValidationError(f"unknown category: {category!r}")
    for required in ("midterm", "final"):
        if required not in data:
            raise ValidationError(f"{required} row is required")
    return GradeCreate(
        student_id=student_id,
        course_id=course_id,
        academic_year=academic_year,
        semester=semester,
        **data,
    )


def import_grades(db: Session, path: str = CSV_PATH):
    """
    Returns (imported, skipped). skipped counts rejected records plus rows whose
    key could not be read; both are logged and the import carries on.
    """
    imported = 0
    with open(path, newline="", encoding="utf-8-sig") as csvfile:
        groups, skipped = _group_rows(csv.DictReader(csvfile))

    for key, rows in groups.items():
        try:
            grade_service.create_grade(db, _payload(key, rows))
        except DomainError as exc:
            db.rollback()
            logger.warning(f"skipped grade {key}: {exc.code} {exc.message}")
            skipped += 1
        except (TypeError, ValueError) as exc:
            # missing or unparsable numbers, or a component pydantic rejects
            logger.warning(f"skipped grade {key}: {exc}")
            skipped += 1
        else:
            imported += 1
    return imported, skipped


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
    db: Session = SessionLocal()
    try:
        imported, skipped = import_grades(db, sys.argv[1] if len(sys.argv) > 1 else CSV_PATH)
    finally:
        db.close()
    print(f"✅ grades CSV -> DB: {imported} imported, {skipped} skipped")
