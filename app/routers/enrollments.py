from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.current_user import get_current_user
from app.core.deps import get_db
from app.core.errors import NotFoundError
from app.core.permissions import require_admin, require_staff
from app.models.course import Course
from app.models.enrollment import CourseEnrollment
from app.models.payment import Payment
from app.models.user import User
from app.schemas.enrollment import DirectEnrollmentCreate, EnrollmentDetail, EnrollmentOut, PaymentRead
from app.services import enrollment as enrollment_service

router = APIRouter()


@router.get("/enrollments/me", response_model=list[EnrollmentOut])
def my_enrollments(
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return (
        db.query(CourseEnrollment)
        .filter(CourseEnrollment.student_id == me.id)
        .order_by(CourseEnrollment.enrolled_at.desc(), CourseEnrollment.id.desc())
        .all()
    )


@router.post(
    "/admin/students/enroll",
    response_model=EnrollmentDetail,
    status_code=status.HTTP_201_CREATED,
)
def enroll_student(
    payload: DirectEnrollmentCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return enrollment_service.enroll_directly(
        db,
        student_id=payload.student_id,
        course_id=payload.course_id,
        tutor_id=payload.tutor_id,
        method=payload.payment_method,
    )


@router.get("/admin/courses/{course_id}/enrollments", response_model=list[EnrollmentDetail])
def course_enrollments(
    course_id: int,
    db: Session = Depends(get_db),
    staff: User = Depends(require_staff),
):
    if not db.get(Course, course_id):
        raise NotFoundError("Course")
    return (
        db.query(CourseEnrollment)
        .filter(CourseEnrollment.course_id == course_id)
        .order_by(CourseEnrollment.enrolled_at.asc(), CourseEnrollment.id.asc())
        .all()
    )


@router.post("/admin/enrollments/{enrollment_id}/cancel", response_model=EnrollmentOut)
def cancel_enrollment(
    enrollment_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return enrollment_service.cancel_enrollment(db, enrollment_id)


@router.get("/payments/me", response_model=list[PaymentRead])
def my_payments(
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return (
        db.query(Payment)
        .filter(Payment.student_id == me.id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .all()
    )


@router.get("/admin/payments", response_model=list[PaymentRead])
def all_payments(
    db: Session = Depends(get_db),
    staff: User = Depends(require_staff),
):
    return db.query(Payment).order_by(Payment.created_at.desc(), Payment.id.desc()).all()
