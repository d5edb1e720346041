from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from database.db import Base
from utils.clock import utcnow


class AttendanceDay(Base):
    __tablename__ = "attendance_days"  # one roll per course per calendar date
    __table_args__ = (
        UniqueConstraint("date", "course_id", name="uq_attendance_date_course"),
    )

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    teacher_id = Column(Integer, index=True)
    total_students = Column(Integer, nullable=False, default=0)

    # derived on every save by services.attendance_calculator.summarize
    present_count = Column(Integer, nullable=False, default=0)
    absent_count = Column(Integer, nullable=False, default=0)
    late_count = Column(Integer, nullable=False, default=0)
    excused_count = Column(Integer, nullable=False, default=0)
    suspended_count = Column(Integer, nullable=False, default=0)
    attendance_percentage = Column(Float, nullable=False, default=0)

    notes = Column(Text)
    is_locked = Column(Boolean, nullable=False, default=False)
    locked_by = Column(Integer)
    locked_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    records = relationship(
        "AttendanceEntry",
        back_populates="day",
        cascade="all, delete-orphan",
        order_by="AttendanceEntry.id",
    )


class AttendanceEntry(Base):
    __tablename__ = "attendance_entries"  # one student's status within a roll

    id = Column(Integer, primary_key=True, index=True)
    attendance_id = Column(Integer, ForeignKey("attendance_days.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    status = Column(String(10), nullable=False)                          # present / absent / late / excused / suspended
    time_in = Column(DateTime)
    time_out = Column(DateTime)
    notes = Column(String(200))
    marked_by = Column(Integer)
    marked_at = Column(DateTime, default=utcnow)

    day = relationship("AttendanceDay", back_populates="records")
