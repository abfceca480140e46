"""
Enrollment workflow: request submission, approval, rejection and direct
enrollment.

Every path that creates an enrollment goes through `enroll_student`, which
takes a student identity resolved one of three ways:

- the account that was logged in when the request was made
  (`SessionUserIdentity`)
- an explicit user id picked by an admin (`UserIdIdentity`)
- the email on an enrollment request (`RequestEmailIdentity`), which may
  create the STUDENT account on approval

The course and tutor rows are locked, in that order, before the duplicate
and capacity checks run, and the checks share one transaction with the
writes. Two approvals racing for the last seat cannot both succeed.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.enums import (
    CourseStatus,
    EnrollmentStatus,
    PaymentMethod,
    PaymentStatus,
    RequestStatus,
    UserRole,
)
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.core.security import unusable_password
from app.models.course import Course
from app.models.enrollment import CourseEnrollment
from app.models.enrollment_request import EnrollmentRequest
from app.models.payment import Payment
from app.models.user import User

logger = logging.getLogger(__name__)

ALREADY_ENROLLED = "Student is already enrolled in this course"
ALREADY_PROCESSED = "Request has already been processed"


# ---------------------------------------------------------------------------
# student identity resolution
# ---------------------------------------------------------------------------


class StudentIdentity:
    def existing(self, db: Session) -> User | None:
        """Return the student if an account already exists."""
        raise NotImplementedError

    def create(self, db: Session) -> User:
        """Create the student account. Only called once every check passed."""
        raise NotImplementedError


@dataclass
class SessionUserIdentity(StudentIdentity):
    """The account that was logged in when the request was made."""

    user: User

    def existing(self, db: Session) -> User | None:
        return _ensure_student(self.user)

    def create(self, db: Session) -> User:
        return self.existing(db)


@dataclass
class UserIdIdentity(StudentIdentity):
    user_id: int

    def existing(self, db: Session) -> User | None:
        student = db.get(User, self.user_id)
        if student is None:
            raise NotFoundError("Student")
        return _ensure_student(student)

    def create(self, db: Session) -> User:
        return self.existing(db)


@dataclass
class RequestEmailIdentity(StudentIdentity):
    request: EnrollmentRequest

    def existing(self, db: Session) -> User | None:
        user = find_user_by_email(db, self.request.student_email)
        if user is None:
            return None
        return _ensure_student(user)

    def create(self, db: Session) -> User:
        student = User(
            email=self.request.student_email.lower(),
            name=self.request.student_name,
            phone=self.request.student_phone,
            whatsapp=self.request.whatsapp_number,
            telegram=self.request.telegram_username,
            role=UserRole.STUDENT.value,
            hashed_password=unusable_password(),
        )
        db.add(student)
        db.flush()
        logger.info("Created student account %s for request %s", student.id, self.request.id)
        return student


def _ensure_student(user: User) -> User:
    if user.role != UserRole.STUDENT.value:
        raise ValidationError("Selected user is not a student")
    return user


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(func.lower(User.email) == email.lower()).first()


# ---------------------------------------------------------------------------
# checks
# ---------------------------------------------------------------------------


def active_enrollment_count(db: Session, *, tutor_id: int | None = None, course_id: int | None = None) -> int:
    q = db.query(func.count(CourseEnrollment.id)).filter(
        CourseEnrollment.status == EnrollmentStatus.ACTIVE.value
    )
    if tutor_id is not None:
        q = q.filter(CourseEnrollment.tutor_id == tutor_id)
    if course_id is not None:
        q = q.filter(CourseEnrollment.course_id == course_id)
    return q.scalar() or 0


def _has_active_enrollment(db: Session, student_id: int, course_id: int) -> bool:
    return (
        db.query(CourseEnrollment.id)
        .filter(
            CourseEnrollment.student_id == student_id,
            CourseEnrollment.course_id == course_id,
            CourseEnrollment.status == EnrollmentStatus.ACTIVE.value,
        )
        .first()
        is not None
    )


def _lock_row(db: Session, model, row_id: int):
    # FOR UPDATE serializes concurrent approvals touching the same row
    return (
        db.query(model)
        .filter(model.id == row_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def _ensure_tutor(tutor: User | None) -> User:
    if tutor is None:
        raise NotFoundError("Tutor")
    if tutor.role != UserRole.TUTOR.value:
        raise ValidationError("Selected user is not a tutor")
    return tutor


def _check_capacity(db: Session, tutor: User, course: Course) -> None:
    capacity = settings.tutor_capacity
    if active_enrollment_count(db, tutor_id=tutor.id) >= capacity:
        raise ConflictError(f"Tutor has reached maximum student capacity ({capacity} students)")

    if course.max_students is not None:
        if active_enrollment_count(db, course_id=course.id) >= course.max_students:
            raise ConflictError("Course has reached its maximum number of students")


# ---------------------------------------------------------------------------
# enrollment
# ---------------------------------------------------------------------------


def enroll_student(
    db: Session,
    identity: StudentIdentity,
    course: Course,
    tutor_id: int,
    method: PaymentMethod = PaymentMethod.MANUAL,
) -> CourseEnrollment:
    """
    Stage an ACTIVE enrollment and its PAID payment. Does not commit.

    Raises ConflictError for a duplicate ACTIVE enrollment, a full tutor or a
    full course, before anything is written.
    """
    student = identity.existing(db)

    course = _lock_row(db, Course, course.id)
    if course is None:
        raise NotFoundError("Course")
    tutor = _ensure_tutor(_lock_row(db, User, tutor_id))

    if student is not None and _has_active_enrollment(db, student.id, course.id):
        raise ConflictError(ALREADY_ENROLLED)
    _check_capacity(db, tutor, course)

    if student is None:
        student = identity.create(db)

    enrollment = CourseEnrollment(
        student_id=student.id,
        course_id=course.id,
        tutor_id=tutor.id,
        status=EnrollmentStatus.ACTIVE.value,
    )
    db.add(enrollment)
    db.flush()

    db.add(
        Payment(
            enrollment_id=enrollment.id,
            student_id=student.id,
            course_id=course.id,
            amount=course.price,
            method=method.value,
            status=PaymentStatus.PAID.value,
        )
    )
    return enrollment


def enroll_directly(
    db: Session,
    *,
    student_id: int,
    course_id: int,
    tutor_id: int,
    method: PaymentMethod,
) -> CourseEnrollment:
    identity = UserIdIdentity(student_id)
    try:
        identity.existing(db)

        course = db.get(Course, course_id)
        if course is None:
            raise NotFoundError("Course")
        if course.status != CourseStatus.ACTIVE.value:
            raise ValidationError("Course is not active")

        enrollment = enroll_student(db, identity, course, tutor_id, method)
        db.commit()
    except IntegrityError:
        # the partial unique index caught a duplicate ACTIVE enrollment
        db.rollback()
        raise ConflictError(ALREADY_ENROLLED)
    except Exception:
        db.rollback()
        raise

    db.refresh(enrollment)
    logger.info(
        "Enrolled student %s in course %s with tutor %s (enrollment %s)",
        student_id,
        course_id,
        tutor_id,
        enrollment.id,
    )
    return enrollment


def cancel_enrollment(db: Session, enrollment_id: int) -> CourseEnrollment:
    enrollment = db.get(CourseEnrollment, enrollment_id)
    if enrollment is None:
        raise NotFoundError("Enrollment")
    if enrollment.status != EnrollmentStatus.ACTIVE.value:
        raise ConflictError("Only active enrollments can be cancelled")

    enrollment.status = EnrollmentStatus.CANCELLED.value
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(enrollment)
    logger.info("Cancelled enrollment %s", enrollment.id)
    return enrollment


# ---------------------------------------------------------------------------
# requests
# ---------------------------------------------------------------------------


def submit_request(
    db: Session, course_id: int, student_id: int | None = None, **contact
) -> EnrollmentRequest:
    """Persist a PENDING request. Nothing else is written or sent."""
    course = db.get(Course, course_id)
    if course is None:
        raise NotFoundError("Course")

    email = contact["student_email"].lower()
    pending = (
        db.query(EnrollmentRequest.id)
        .filter(
            EnrollmentRequest.course_id == course_id,
            func.lower(EnrollmentRequest.student_email) == email,
            EnrollmentRequest.status == RequestStatus.PENDING.value,
        )
        .first()
    )
    if pending is not None:
        raise ConflictError("You already have a pending enrollment request for this course")

    selected_tutor_id = contact.get("selected_tutor_id")
    if selected_tutor_id is not None:
        _ensure_tutor(db.get(User, selected_tutor_id))

    contact["student_email"] = email
    req = EnrollmentRequest(
        course_id=course_id,
        student_id=student_id,
        status=RequestStatus.PENDING.value,
        **contact,
    )
    db.add(req)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(req)
    logger.info("Enrollment request %s submitted for course %s", req.id, course_id)
    return req


def _load_pending(db: Session, request_id: int, *, lock: bool = False) -> EnrollmentRequest:
    q = db.query(EnrollmentRequest).filter(EnrollmentRequest.id == request_id)
    if lock:
        q = q.with_for_update()
    req = q.first()
    if req is None:
        raise NotFoundError("Enrollment request")
    if req.status != RequestStatus.PENDING.value:
        raise ConflictError(ALREADY_PROCESSED)
    return req


def approve_request(db: Session, request_id: int, admin: User) -> EnrollmentRequest:
    """
    Approve a PENDING request: enroll the student with the chosen tutor
    (or the course creator) and record a PAID payment for the course price.

    All writes commit together or not at all.
    """
    try:
        req = _load_pending(db, request_id, lock=True)
        course = req.course

        tutor_id = req.selected_tutor_id or course.creator_id
        if tutor_id is None:
            raise ValidationError("No tutor available for this course")

        if req.student is not None:
            identity = SessionUserIdentity(req.student)
        else:
            identity = RequestEmailIdentity(req)
        enrollment = enroll_student(db, identity, course, tutor_id)

        req.status = RequestStatus.APPROVED.value
        req.student_id = enrollment.student_id
        req.enrollment_id = enrollment.id
        req.processed_by_id = admin.id
        req.processed_at = datetime.now(timezone.utc)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(ALREADY_ENROLLED)
    except Exception:
        db.rollback()
        raise

    db.refresh(req)
    logger.info(
        "Enrollment request %s approved by %s (enrollment %s)",
        req.id,
        admin.id,
        req.enrollment_id,
    )
    return req


def reject_request(
    db: Session, request_id: int, admin: User, admin_notes: str | None = None
) -> EnrollmentRequest:
    req = _load_pending(db, request_id)

    req.status = RequestStatus.REJECTED.value
    req.admin_notes = admin_notes
    req.processed_by_id = admin.id
    req.processed_at = datetime.now(timezone.utc)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(req)
    logger.info("Enrollment request %s rejected by %s", req.id, admin.id)
    return req


def delete_request(db: Session, request_id: int) -> None:
    req = db.get(EnrollmentRequest, request_id)
    if req is None:
        raise NotFoundError("Enrollment request")
    if req.status == RequestStatus.APPROVED.value:
        raise ConflictError("Approved requests cannot be deleted")

    db.delete(req)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Enrollment request %s deleted", request_id)
