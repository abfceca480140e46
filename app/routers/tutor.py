from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.core.enums import EnrollmentStatus
from app.core.permissions import require_teaching
from app.models.content import Test, TestSubmission, Topic
from app.models.course import Course
from app.models.enrollment import CourseEnrollment
from app.models.user import User
from app.schemas.tutor import TutorCourseStats, TutorStudentRow

router = APIRouter(tags=["tutor"])


@router.get("/tutor/dashboard", response_model=list[TutorCourseStats])
def tutor_dashboard(
    db: Session = Depends(get_db),
    me: User = Depends(require_teaching),
):
    courses = db.query(Course).filter(Course.creator_id == me.id).order_by(Course.id.asc()).all()

    rows: list[TutorCourseStats] = []

    for course in courses:
        active_students = (
            db.query(func.count(CourseEnrollment.id))
            .filter(
                CourseEnrollment.course_id == course.id,
                CourseEnrollment.status == EnrollmentStatus.ACTIVE.value,
            )
            .scalar()
        ) or 0

        total_topics = (
            db.query(func.count(Topic.id))
            .filter(Topic.course_id == course.id)
            .scalar()
        ) or 0

        total_tests = (
            db.query(func.count(Test.id))
            .join(Topic, Test.topic_id == Topic.id)
            .filter(Topic.course_id == course.id)
            .scalar()
        ) or 0

        total_submissions = (
            db.query(func.count(TestSubmission.id))
            .join(Test, TestSubmission.test_id == Test.id)
            .join(Topic, Test.topic_id == Topic.id)
            .filter(Topic.course_id == course.id)
            .scalar()
        ) or 0

        rows.append(
            TutorCourseStats(
                course_id=course.id,
                course_title=course.title,
                active_students=active_students,
                total_topics=total_topics,
                total_tests=total_tests,
                total_submissions=total_submissions,
            )
        )

    return rows


@router.get("/tutor/students", response_model=list[TutorStudentRow])
def tutor_students(
    db: Session = Depends(get_db),
    me: User = Depends(require_teaching),
):
    enrollments = (
        db.query(CourseEnrollment)
        .filter(
            CourseEnrollment.tutor_id == me.id,
            CourseEnrollment.status == EnrollmentStatus.ACTIVE.value,
        )
        .order_by(CourseEnrollment.enrolled_at.asc(), CourseEnrollment.id.asc())
        .all()
    )

    return [
        TutorStudentRow(
            enrollment_id=e.id,
            student_id=e.student_id,
            student_name=e.student.name,
            student_email=e.student.email,
            course_id=e.course_id,
            course_title=e.course.title,
            enrolled_at=e.enrolled_at,
        )
        for e in enrollments
    ]
