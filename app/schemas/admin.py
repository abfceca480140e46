from datetime import datetime

from pydantic import BaseModel


class AdminStats(BaseModel):
    total_users: int
    total_students: int
    total_tutors: int
    total_courses: int
    active_courses: int
    total_enrollments: int
    active_enrollments: int
    pending_requests: int
    revenue: int
    conversion_rate: float


class TopCourseRow(BaseModel):
    course_id: int
    title: str
    status: str
    price: int
    creator_name: str | None
    active_enrollments: int
    topics: int
    tests: int


class RecentUserRow(BaseModel):
    id: int
    email: str
    name: str | None
    role: str
    created_at: datetime

    class Config:
        from_attributes = True


class TutorLoadRow(BaseModel):
    tutor_id: int
    name: str | None
    email: str
    active_students: int
    capacity: int
    remaining: int
