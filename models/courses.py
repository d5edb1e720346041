from sqlalchemy import Column, Integer, String, Text
from database.db import Base

class Course(Base):
    __tablename__ = "courses"  # course catalogue

    id = Column(Integer, primary_key=True, index=True)                  # course ID (Primary Key)
    name = Column(String(100), nullable=False)                         # course name
    course_code = Column(String(20), nullable=False, unique=True)      # catalogue code (e.g. MATH101)
    description = Column(Text)
    credits = Column(Integer)
    teacher_id = Column(Integer)                                       # owning teacher (no teacher table)
