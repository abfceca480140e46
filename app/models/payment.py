from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from app.core.enums import PaymentMethod, PaymentStatus
from app.db.base_class import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    # one-to-one with the enrollment it funds
    enrollment_id = Column(
        Integer,
        ForeignKey("course_enrollments.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)

    amount = Column(Integer, nullable=False)
    method = Column(String(30), nullable=False, default=PaymentMethod.MANUAL.value)
    status = Column(String(20), nullable=False, default=PaymentStatus.PAID.value, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    enrollment = relationship("CourseEnrollment", back_populates="payment")
