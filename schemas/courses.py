from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

# ✅ input (POST/PUT)
class CourseCreate(BaseModel):
    name: str = Field(..., min_length=1)     # course name
    course_code: str = Field(..., min_length=1)
    description: Optional[str] = None
    credits: Optional[int] = Field(default=None, ge=0)
    teacher_id: Optional[int] = None

# ✅ output (GET, detail)
class Course(CourseCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)
