from datetime import datetime

from pydantic import BaseModel


class TutorCourseStats(BaseModel):
    course_id: int
    course_title: str
    active_students: int
    total_topics: int
    total_tests: int
    total_submissions: int


class TutorStudentRow(BaseModel):
    enrollment_id: int
    student_id: int
    student_name: str | None
    student_email: str
    course_id: int
    course_title: str
    enrolled_at: datetime
