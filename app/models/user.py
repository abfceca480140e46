from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.enums import UserRole
from app.db.base_class import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    name: Mapped[str | None] = mapped_column(String(255))
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.STUDENT.value, index=True
    )

    phone: Mapped[str | None] = mapped_column(String(50))
    whatsapp: Mapped[str | None] = mapped_column(String(50))
    telegram: Mapped[str | None] = mapped_column(String(100))
    bio: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    courses_created = relationship(
        "Course", back_populates="creator"
    )

    # hard delete removes everything hanging off the user
    enrollments = relationship(
        "CourseEnrollment",
        back_populates="student",
        foreign_keys="CourseEnrollment.student_id",
        cascade="all, delete-orphan",
    )
    tutored_enrollments = relationship(
        "CourseEnrollment",
        back_populates="tutor",
        foreign_keys="CourseEnrollment.tutor_id",
        cascade="all, delete-orphan",
    )
    test_submissions = relationship(
        "TestSubmission", back_populates="student", cascade="all, delete-orphan"
    )
    chat_memberships = relationship(
        "ChatParticipant", back_populates="user", cascade="all, delete-orphan"
    )
    points = relationship(
        "UserPoints", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    point_transactions = relationship(
        "PointTransaction", back_populates="user", cascade="all, delete-orphan"
    )
    achievements = relationship(
        "UserAchievement", back_populates="user", cascade="all, delete-orphan"
    )
    challenge_submissions = relationship(
        "ChallengeSubmission", back_populates="user", cascade="all, delete-orphan"
    )
