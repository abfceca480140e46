from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from app.core.enums import ContactChannel
from app.schemas.enrollment import EnrollmentDetail
from app.schemas.user import UserBrief


class ContactDetails(BaseModel):
    student_phone: str = Field(min_length=1, max_length=50)
    preferred_contact: ContactChannel
    whatsapp_number: str | None = None
    telegram_username: str | None = None
    selected_tutor_id: int | None = None
    message: str | None = None


class EnrollmentRequestCreate(ContactDetails):
    course_id: int
    student_name: str = Field(min_length=1, max_length=255)
    student_email: EmailStr


class StudentEnrollmentRequestCreate(ContactDetails):
    """Name and email come from the logged-in account."""

    course_id: int


class ApproveRequest(BaseModel):
    request_id: int


class RejectRequest(BaseModel):
    admin_notes: str | None = None


class CourseBrief(BaseModel):
    id: int
    title: str
    price: int

    class Config:
        from_attributes = True


class EnrollmentRequestRead(BaseModel):
    id: int
    course_id: int
    student_name: str
    student_email: str
    student_phone: str
    whatsapp_number: str | None = None
    telegram_username: str | None = None
    preferred_contact: str
    selected_tutor_id: int | None = None
    message: str | None = None
    status: str
    admin_notes: str | None = None
    student_id: int | None = None
    enrollment_id: int | None = None
    processed_by_id: int | None = None
    processed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class EnrollmentRequestDetail(EnrollmentRequestRead):
    course: CourseBrief
    selected_tutor: UserBrief | None = None
    student: UserBrief | None = None


class ApprovalResult(BaseModel):
    message: str
    request: EnrollmentRequestRead
    enrollment: EnrollmentDetail
