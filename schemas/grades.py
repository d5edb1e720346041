import datetime as dt
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Semester(str, Enum):
    FIRST = "1st"
    SECOND = "2nd"
    THIRD = "3rd"
    FOURTH = "4th"


class LetterGrade(str, Enum):
    A_PLUS = "A+"
    A = "A"
    A_MINUS = "A-"
    B_PLUS = "B+"
    B = "B"
    B_MINUS = "B-"
    C_PLUS = "C+"
    C = "C"
    C_MINUS = "C-"
    D_PLUS = "D+"
    D = "D"
    D_MINUS = "D-"
    F = "F"


# ✅ repeating scored item (assignment / quiz)
class ScoreComponent(BaseModel):
    title: Optional[str] = None
    max_score: float
    score: float
    weight: float = 1
    date: Optional[dt.date] = None
    feedback: Optional[str] = None
    graded_by: Optional[int] = None
    graded_at: Optional[dt.datetime] = None


# ✅ single scored item (midterm / final / participation); score stays None until graded
class FixedComponent(BaseModel):
    max_score: float
    score: Optional[float] = None
    date: Optional[dt.date] = None
    feedback: Optional[str] = None
    graded_by: Optional[int] = None
    graded_at: Optional[dt.datetime] = None


# ✅ partial update, merged field by field into the stored component
class FixedComponentPatch(BaseModel):
    max_score: Optional[float] = None
    score: Optional[float] = None
    date: Optional[dt.date] = None
    feedback: Optional[str] = None
    graded_by: Optional[int] = None
    graded_at: Optional[dt.datetime] = None


class FinalGrade(BaseModel):
    percentage: float
    letter_grade: LetterGrade
    gpa: float


class GradeRecord(BaseModel):
    """Everything the grade calculator reads, plus the final grade it writes."""
    assignments: List[ScoreComponent] = Field(default_factory=list)
    quizzes: List[ScoreComponent] = Field(default_factory=list)
    midterm: Optional[FixedComponent] = None
    final: Optional[FixedComponent] = None
    participation: Optional[FixedComponent] = None
    attendance_percentage: Optional[float] = None
    final_grade: Optional[FinalGrade] = None
    is_published: bool = False

    model_config = ConfigDict(from_attributes=True)


# ✅ input (POST)
class GradeCreate(BaseModel):
    student_id: int
    course_id: int
    teacher_id: Optional[int] = None
    academic_year: str = Field(..., min_length=1)
    semester: Semester
    midterm: FixedComponent
    final: FixedComponent
    assignments: List[ScoreComponent] = Field(default_factory=list)
    quizzes: List[ScoreComponent] = Field(default_factory=list)
    participation: Optional[FixedComponent] = None
    attendance_percentage: Optional[float] = None
    comments: Optional[str] = None


# ✅ input (PUT); lists replace, fixed components merge
class GradeUpdate(BaseModel):
    assignments: Optional[List[ScoreComponent]] = None
    quizzes: Optional[List[ScoreComponent]] = None
    midterm: Optional[FixedComponentPatch] = None
    final: Optional[FixedComponentPatch] = None
    participation: Optional[FixedComponentPatch] = None
    attendance_percentage: Optional[float] = None
    comments: Optional[str] = None


class PublishRequest(BaseModel):
    actor_id: Optional[int] = None


# ✅ output (GET, detail)
class GradeOut(GradeRecord):
    id: int
    student_id: int
    course_id: int
    teacher_id: Optional[int] = None
    academic_year: str
    semester: str
    comments: Optional[str] = None
    published_at: Optional[dt.datetime] = None
    published_by: Optional[int] = None
    last_updated: Optional[dt.datetime] = None


class GradeStats(BaseModel):
    total_students: int
    avg_grade: Optional[float] = None
    avg_gpa: Optional[float] = None
    grade_distribution: Dict[str, int] = Field(default_factory=dict)
