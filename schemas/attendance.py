import datetime as dt
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"
    SUSPENDED = "suspended"


# ✅ input: one student's mark
class AttendanceEntryIn(BaseModel):
    student_id: int
    status: AttendanceStatus
    notes: Optional[str] = None
    time_in: Optional[dt.datetime] = None
    time_out: Optional[dt.datetime] = None


class AttendanceEntryOut(BaseModel):
    id: int
    student_id: int
    status: AttendanceStatus
    notes: Optional[str] = None
    time_in: Optional[dt.datetime] = None
    time_out: Optional[dt.datetime] = None
    marked_by: Optional[int] = None
    marked_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ✅ input (POST)
class AttendanceCreate(BaseModel):
    course_id: int
    date: dt.date
    teacher_id: Optional[int] = None
    records: List[AttendanceEntryIn] = Field(default_factory=list)
    notes: Optional[str] = None


# ✅ input (PUT)
class AttendanceUpdate(BaseModel):
    records: Optional[List[AttendanceEntryIn]] = None
    notes: Optional[str] = None
    marked_by: Optional[int] = None


class MarkRequest(BaseModel):
    status: AttendanceStatus
    notes: Optional[str] = None
    marked_by: Optional[int] = None


class LockRequest(BaseModel):
    actor_id: Optional[int] = None


class AttendanceTally(BaseModel):
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0
    suspended: int = 0


# ✅ output (GET, detail)
class AttendanceDayOut(BaseModel):
    id: int
    date: dt.date
    course_id: int
    teacher_id: Optional[int] = None
    total_students: int
    present_count: int
    absent_count: int
    late_count: int
    excused_count: int
    suspended_count: int
    attendance_percentage: float
    notes: Optional[str] = None
    is_locked: bool
    locked_by: Optional[int] = None
    locked_at: Optional[dt.datetime] = None
    records: List[AttendanceEntryOut] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class CourseAttendanceStats(BaseModel):
    total_days: int = 0
    avg_attendance: Optional[float] = None
    total_present: int = 0
    total_absent: int = 0
    total_late: int = 0
    total_excused: int = 0


class StudentAttendanceStats(BaseModel):
    total_days: int = 0
    present_days: int = 0
    absent_days: int = 0
    late_days: int = 0
    excused_days: int = 0
    attendance_percentage: float = 0
