from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.core.enums import RequestStatus
from app.db.base_class import Base


class EnrollmentRequest(Base):
    """A prospective student's ask to join a course, pending staff approval."""

    __tablename__ = "enrollment_requests"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)

    # contact details as submitted; no account is required to ask
    student_name = Column(String(255), nullable=False)
    student_email = Column(String(255), nullable=False, index=True)
    student_phone = Column(String(50), nullable=False)
    whatsapp_number = Column(String(50), nullable=True)
    telegram_username = Column(String(100), nullable=True)
    preferred_contact = Column(String(20), nullable=False)
    selected_tutor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    message = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=RequestStatus.PENDING.value, index=True)
    admin_notes = Column(Text, nullable=True)

    # filled in when the request is processed
    student_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    enrollment_id = Column(
        Integer, ForeignKey("course_enrollments.id", ondelete="SET NULL"), nullable=True
    )
    processed_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    course = relationship("Course", back_populates="enrollment_requests")
    selected_tutor = relationship("User", foreign_keys=[selected_tutor_id])
    student = relationship("User", foreign_keys=[student_id])
    enrollment = relationship("CourseEnrollment", foreign_keys=[enrollment_id])
