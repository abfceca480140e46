from typing import Optional

from pydantic import BaseModel


class CourseDashboardRow(BaseModel):
    course_id: int
    course_title: str
    tutor_id: int
    tutor_name: Optional[str] = None
    total_tests: int
    tests_taken: int
    average_score: float | None
