from datetime import datetime

from pydantic import BaseModel

from app.core.enums import PaymentMethod
from app.schemas.user import UserBrief


class DirectEnrollmentCreate(BaseModel):
    student_id: int
    course_id: int
    tutor_id: int
    payment_method: PaymentMethod


class PaymentRead(BaseModel):
    id: int
    enrollment_id: int
    student_id: int
    course_id: int
    amount: int
    method: str
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class EnrollmentOut(BaseModel):
    id: int
    student_id: int
    course_id: int
    tutor_id: int
    status: str
    enrolled_at: datetime

    class Config:
        from_attributes = True


class EnrollmentDetail(EnrollmentOut):
    student: UserBrief
    tutor: UserBrief
    payment: PaymentRead | None = None
