from sqlalchemy import (
    JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint,
)
from database.db import Base
from utils.clock import utcnow


class Grade(Base):
    """One student's graded components for one course / academic year / semester."""

    __tablename__ = "grades"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", "academic_year", "semester", name="uq_grade_student_course_term"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    teacher_id = Column(Integer, index=True)
    academic_year = Column(String(20), nullable=False)                  # e.g. 2025-2026
    semester = Column(String(5), nullable=False)                        # 1st / 2nd / 3rd / 4th

    # scored components, stored as they were submitted (see schemas/grades.py)
    assignments = Column(JSON, nullable=False, default=list)
    quizzes = Column(JSON, nullable=False, default=list)
    midterm = Column(JSON)
    final = Column(JSON)
    participation = Column(JSON)
    attendance_percentage = Column(Float)                               # supplied by the caller

    # derived on every save by services.grade_calculator.recompute
    final_percentage = Column(Float)
    letter_grade = Column(String(2))
    gpa = Column(Float)

    comments = Column(Text)
    is_published = Column(Boolean, nullable=False, default=False)
    published_at = Column(DateTime)
    published_by = Column(Integer)
    last_updated = Column(DateTime, default=utcnow)
    created_at = Column(DateTime, default=utcnow)

    @property
    def final_grade(self):
        if self.letter_grade is None:
            return None
        return {
            "percentage": self.final_percentage,
            "letter_grade": self.letter_grade,
            "gpa": self.gpa,
        }
