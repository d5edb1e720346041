from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

# ✅ input (POST/PUT)
class StudentCreate(BaseModel):
    student_code: str = Field(..., min_length=1)     # school-issued student number
    first_name: str
    last_name: str
    grade_level: Optional[int] = None
    email: Optional[str] = None

# ✅ output (GET, detail)
class Student(StudentCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)
