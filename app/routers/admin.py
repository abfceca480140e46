from fastapi import APIRouter, Depends, Query
from sqlalchemy import case, func
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_db
from app.core.enums import (
    CourseStatus,
    EnrollmentStatus,
    PaymentStatus,
    RequestStatus,
    UserRole,
)
from app.core.permissions import require_staff
from app.models.content import Test, Topic
from app.models.course import Course
from app.models.enrollment import CourseEnrollment
from app.models.enrollment_request import EnrollmentRequest
from app.models.payment import Payment
from app.models.user import User
from app.schemas.admin import AdminStats, RecentUserRow, TopCourseRow, TutorLoadRow

router = APIRouter()


def _count(db: Session, column, *criteria) -> int:
    return (db.query(func.count(column)).filter(*criteria).scalar()) or 0


@router.get("/stats", response_model=AdminStats)
def admin_stats(
    db: Session = Depends(get_db),
    staff: User = Depends(require_staff),
):
    requests = db.query(
        func.sum(case((EnrollmentRequest.status == RequestStatus.APPROVED.value, 1), else_=0)).label("approved"),
        func.sum(case((EnrollmentRequest.status == RequestStatus.REJECTED.value, 1), else_=0)).label("rejected"),
        func.sum(case((EnrollmentRequest.status == RequestStatus.PENDING.value, 1), else_=0)).label("pending"),
    ).first()

    approved = int(requests.approved or 0)
    decided = approved + int(requests.rejected or 0)
    conversion = round(approved * 100 / decided, 2) if decided else 0.0

    revenue = (
        db.query(func.sum(Payment.amount))
        .filter(Payment.status == PaymentStatus.PAID.value)
        .scalar()
    ) or 0

    return {
        "total_users": _count(db, User.id),
        "total_students": _count(db, User.id, User.role == UserRole.STUDENT.value),
        "total_tutors": _count(db, User.id, User.role == UserRole.TUTOR.value),
        "total_courses": _count(db, Course.id),
        "active_courses": _count(db, Course.id, Course.status == CourseStatus.ACTIVE.value),
        "total_enrollments": _count(db, CourseEnrollment.id),
        "active_enrollments": _count(
            db, CourseEnrollment.id, CourseEnrollment.status == EnrollmentStatus.ACTIVE.value
        ),
        "pending_requests": int(requests.pending or 0),
        "revenue": int(revenue),
        "conversion_rate": conversion,
    }


@router.get("/top-courses", response_model=list[TopCourseRow])
def top_courses(
    limit: int = Query(default=5, ge=1, le=50),
    db: Session = Depends(get_db),
    staff: User = Depends(require_staff),
):
    active = func.sum(
        case((CourseEnrollment.status == EnrollmentStatus.ACTIVE.value, 1), else_=0)
    ).label("active_enrollments")

    rows = (
        db.query(Course, active)
        .outerjoin(CourseEnrollment, CourseEnrollment.course_id == Course.id)
        .group_by(Course.id)
        .order_by(active.desc(), Course.id.asc())
        .limit(limit)
        .all()
    )

    result: list[dict] = []
    for course, active_count in rows:
        topics = _count(db, Topic.id, Topic.course_id == course.id)
        tests = (
            db.query(func.count(Test.id))
            .join(Topic, Test.topic_id == Topic.id)
            .filter(Topic.course_id == course.id)
            .scalar()
        ) or 0
        result.append(
            {
                "course_id": course.id,
                "title": course.title,
                "status": course.status,
                "price": course.price,
                "creator_name": course.creator.name if course.creator else None,
                "active_enrollments": int(active_count or 0),
                "topics": topics,
                "tests": tests,
            }
        )
    return result


@router.get("/recent-users", response_model=list[RecentUserRow])
def recent_users(
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
    staff: User = Depends(require_staff),
):
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).limit(limit).all()


@router.get("/tutors", response_model=list[TutorLoadRow])
def tutor_load(
    db: Session = Depends(get_db),
    staff: User = Depends(require_staff),
):
    load = func.count(CourseEnrollment.id).label("active_students")
    rows = (
        db.query(User, load)
        .outerjoin(
            CourseEnrollment,
            (CourseEnrollment.tutor_id == User.id)
            & (CourseEnrollment.status == EnrollmentStatus.ACTIVE.value),
        )
        .filter(User.role == UserRole.TUTOR.value)
        .group_by(User.id)
        .order_by(User.id.asc())
        .all()
    )

    capacity = settings.tutor_capacity
    return [
        {
            "tutor_id": tutor.id,
            "name": tutor.name,
            "email": tutor.email,
            "active_students": int(active or 0),
            "capacity": capacity,
            "remaining": max(capacity - int(active or 0), 0),
        }
        for tutor, active in rows
    ]
