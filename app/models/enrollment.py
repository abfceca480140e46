from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, func, text
from sqlalchemy.orm import relationship

from app.core.enums import EnrollmentStatus
from app.db.base_class import Base


class CourseEnrollment(Base):
    __tablename__ = "course_enrollments"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    course_id = Column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tutor_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(
        String(20), nullable=False, default=EnrollmentStatus.ACTIVE.value, index=True
    )
    enrolled_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # one ACTIVE enrollment per (student, course); cancelled rows may repeat
    __table_args__ = (
        Index(
            "uq_course_enrollments_active_student_course",
            "student_id",
            "course_id",
            unique=True,
            sqlite_where=text("status = 'ACTIVE'"),
            postgresql_where=text("status = 'ACTIVE'"),
        ),
    )

    student = relationship(
        "User", back_populates="enrollments", foreign_keys=[student_id]
    )
    tutor = relationship(
        "User", back_populates="tutored_enrollments", foreign_keys=[tutor_id]
    )
    course = relationship("Course", back_populates="enrollments")
    payment = relationship(
        "Payment",
        back_populates="enrollment",
        uselist=False,
        cascade="all, delete-orphan",
    )
