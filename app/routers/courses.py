import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.current_user import get_current_user, get_optional_user
from app.core.deps import get_db
from app.core.enums import ADMIN_ROLES, TEACHING_ROLES, CourseStatus, EnrollmentStatus
from app.core.permissions import require_teaching
from app.models.content import Test, TestSubmission, Topic
from app.models.course import Course
from app.models.enrollment import CourseEnrollment
from app.models.user import User
from app.schemas.course import CourseCreate, CourseDetail, CourseRead, CourseUpdate
from app.schemas.dashboard import CourseDashboardRow

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_course_exists(db: Session, course_id: int) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


def ensure_can_edit(course: Course, user: User) -> None:
    """Only the course creator or an admin may change a course and its content."""
    if course.creator_id == user.id:
        return
    if user.role in {r.value for r in ADMIN_ROLES}:
        return
    raise HTTPException(status_code=403, detail="Not course owner")


@router.get("", response_model=list[CourseRead])
def list_courses(db: Session = Depends(get_db)):
    return (
        db.query(Course)
        .filter(Course.status == CourseStatus.ACTIVE.value)
        .order_by(Course.created_at.desc(), Course.id.desc())
        .all()
    )


@router.post("", response_model=CourseRead, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CourseCreate,
    db: Session = Depends(get_db),
    me: User = Depends(require_teaching),
):
    course = Course(
        title=payload.title,
        description=payload.description,
        price=payload.price,
        max_students=payload.max_students,
        status=payload.status.value,
        creator_id=me.id,
    )
    db.add(course)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(course)
    logger.info("Course %s created by %s", course.id, me.id)
    return course


@router.get("/me", response_model=list[CourseRead])
def my_courses(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return (
        db.query(Course)
        .join(CourseEnrollment, CourseEnrollment.course_id == Course.id)
        .filter(
            CourseEnrollment.student_id == current_user.id,
            CourseEnrollment.status == EnrollmentStatus.ACTIVE.value,
        )
        .order_by(Course.id.asc())
        .all()
    )


@router.get("/me/dashboard", response_model=list[CourseDashboardRow])
def my_dashboard(
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    enrollments = (
        db.query(CourseEnrollment)
        .filter(
            CourseEnrollment.student_id == me.id,
            CourseEnrollment.status == EnrollmentStatus.ACTIVE.value,
        )
        .order_by(CourseEnrollment.enrolled_at.asc(), CourseEnrollment.id.asc())
        .all()
    )

    result: list[dict] = []
    for e in enrollments:
        total_tests = (
            db.query(func.count(Test.id))
            .join(Topic, Test.topic_id == Topic.id)
            .filter(Topic.course_id == e.course_id)
            .scalar()
        ) or 0

        agg = (
            db.query(
                func.count(TestSubmission.id).label("taken"),
                func.avg(TestSubmission.score).label("average_score"),
            )
            .join(Test, TestSubmission.test_id == Test.id)
            .join(Topic, Test.topic_id == Topic.id)
            .filter(Topic.course_id == e.course_id, TestSubmission.student_id == me.id)
            .first()
        )

        avg = float(agg.average_score) if agg.average_score is not None else None
        result.append(
            {
                "course_id": e.course_id,
                "course_title": e.course.title,
                "tutor_id": e.tutor_id,
                "tutor_name": e.tutor.name,
                "total_tests": int(total_tests),
                "tests_taken": int(agg.taken or 0),
                "average_score": avg,
            }
        )

    return result


@router.get("/{course_id}", response_model=CourseDetail)
def get_course(
    course_id: int,
    db: Session = Depends(get_db),
    viewer: User | None = Depends(get_optional_user),
):
    course = _ensure_course_exists(db, course_id)

    # drafts are only visible to people who can teach
    if course.status != CourseStatus.ACTIVE.value:
        if viewer is None or viewer.role not in {r.value for r in TEACHING_ROLES}:
            raise HTTPException(status_code=404, detail="Course not found")
    return course


@router.patch("/{course_id}", response_model=CourseRead)
def update_course(
    course_id: int,
    payload: CourseUpdate,
    db: Session = Depends(get_db),
    me: User = Depends(require_teaching),
):
    course = _ensure_course_exists(db, course_id)
    ensure_can_edit(course, me)

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("status") is not None:
        changes["status"] = changes["status"].value
    for field, value in changes.items():
        setattr(course, field, value)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(course)
    return course


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(
    course_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(require_teaching),
):
    course = _ensure_course_exists(db, course_id)
    ensure_can_edit(course, me)

    db.delete(course)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Course %s deleted by %s", course_id, me.id)
