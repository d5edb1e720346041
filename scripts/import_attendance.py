"""
CSV -> attendance days.

One row per student mark:
    date,course_id,student_id,status,notes,teacher_id
Rows sharing (date, course_id) become one attendance day, created through
services.attendance_service so the counts and percentage are computed on save.
"""

import csv
import logging
import sys
from collections import OrderedDict
from datetime import date

from sqlalchemy.orm import Session

from database.db import SessionLocal, init_db
from schemas.attendance import AttendanceCreate, AttendanceEntryIn
from services import attendance_service
from utils.errors import DomainError

logger = logging.getLogger(__name__)

CSV_PATH = "data/attendance.csv"


def import_attendance(db: Session, path: str = CSV_PATH):
    """
    Returns (imported, skipped). skipped counts rejected days plus rows whose
    date or course_id could not be read; both are logged and the import carries on.
    """
    groups = OrderedDict()
    imported, skipped = 0, 0
    with open(path, newline="", encoding="utf-8-sig") as csvfile:
        for line, row in enumerate(csv.DictReader(csvfile), start=2):
            try:
                key = (date.fromisoformat((row["date"] or "").strip()), int(row["course_id"]))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning(f"skipped attendance row {line}: {exc}")
                skipped += 1
                continue
            groups.setdefault(key, []).append(row)

    for (day, course_id), rows in groups.items():
        try:
            teacher_id = next((int(r["teacher_id"]) for r in rows if (r.get("teacher_id") or "").strip()), None)
            payload = AttendanceCreate(
                date=day,
                course_id=course_id,
                teacher_id=teacher_id,
                records=[
                    AttendanceEntryIn(
                        student_id=int(r["student_id"]),
                        status=(r["status"] or "").strip().lower(),
                        notes=r.get("notes") or None,
                    )
                    for r in rows
                ],
            )
            attendance_service.create_attendance(db, payload)
        except DomainError as exc:
            db.rollback()
            logger.warning(f"skipped attendance {day} course_id={course_id}: {exc.code} {exc.message}")
            skipped += 1
        except (TypeError, ValueError) as exc:
            # unknown status or unparsable ids
            logger.warning(f"skipped attendance {day} course_id={course_id}: {exc}")
            skipped += 1
        else:
            imported += 1
    return imported, skipped


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
    db: Session = SessionLocal()
    try:
        imported, skipped = import_attendance(db, sys.argv[1] if len(sys.argv) > 1 else CSV_PATH)
    finally:
        db.close()
    print(f"✅ attendance CSV -> DB: {imported} imported, {skipped} skipped")
