from sqlalchemy import Column, Integer, String
from database.db import Base

class Student(Base):
    __tablename__ = "students"  # student master table

    id = Column(Integer, primary_key=True, index=True)                  # student ID (Primary Key)
    student_code = Column(String(20), nullable=False, unique=True)     # school-issued student number
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    grade_level = Column(Integer)                                      # year group
    email = Column(String(200))
