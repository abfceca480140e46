import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import and_
from sqlalchemy.orm import Session

from app.core.current_user import get_current_user
from app.core.deps import get_db
from app.core.enums import ADMIN_ROLES, EnrollmentStatus
from app.core.permissions import require_teaching
from app.models.content import Material, Subtopic, Test, TestQuestion, TestSubmission, Topic
from app.models.course import Course
from app.models.enrollment import CourseEnrollment
from app.models.user import User
from app.routers.courses import ensure_can_edit
from app.schemas.content import (
    MaterialCreate,
    MaterialRead,
    QuestionAdminRead,
    QuestionCreate,
    SubtopicCreate,
    SubtopicRead,
    TestCreate,
    TestDetail,
    TestSummary,
    TopicCreate,
    TopicRead,
)
from app.schemas.submission import TestSubmissionRead, TestSubmitRequest
from app.services.gamification import award_test_performance

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_or_404(db: Session, model, obj_id: int, label: str):
    obj = db.get(model, obj_id)
    if not obj:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return obj


def _has_active_enrollment(db: Session, course_id: int, student_id: int) -> bool:
    return (
        db.query(CourseEnrollment)
        .filter(
            CourseEnrollment.course_id == course_id,
            CourseEnrollment.student_id == student_id,
            CourseEnrollment.status == EnrollmentStatus.ACTIVE.value,
        )
        .first()
        is not None
    )


def _can_edit(course: Course, user: User) -> bool:
    return course.creator_id == user.id or user.role in {r.value for r in ADMIN_ROLES}


def _save(db: Session, obj) -> None:
    db.add(obj)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(obj)


def _remove(db: Session, obj) -> None:
    db.delete(obj)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


# --- topics -----------------------------------------------------------------


@router.post(
    "/courses/{course_id}/topics",
    response_model=TopicRead,
    status_code=status.HTTP_201_CREATED,
)
def create_topic(
    course_id: int,
    payload: TopicCreate,
    db: Session = Depends(get_db),
    me: User = Depends(require_teaching),
):
    course = _get_or_404(db, Course, course_id, "Course")
    ensure_can_edit(course, me)

    topic = Topic(course_id=course.id, **payload.model_dump())
    _save(db, topic)
    return topic


@router.delete("/topics/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_topic(
    topic_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(require_teaching),
):
    topic = _get_or_404(db, Topic, topic_id, "Topic")
    ensure_can_edit(topic.course, me)
    _remove(db, topic)


# --- subtopics --------------------------------------------------------------


@router.post(
    "/topics/{topic_id}/subtopics",
    response_model=SubtopicRead,
    status_code=status.HTTP_201_CREATED,
)
def create_subtopic(
    topic_id: int,
    payload: SubtopicCreate,
    db: Session = Depends(get_db),
    me: User = Depends(require_teaching),
):
    topic = _get_or_404(db, Topic, topic_id, "Topic")
    ensure_can_edit(topic.course, me)

    subtopic = Subtopic(topic_id=topic.id, **payload.model_dump())
    _save(db, subtopic)
    return subtopic


@router.delete("/subtopics/{subtopic_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subtopic(
    subtopic_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(require_teaching),
):
    subtopic = _get_or_404(db, Subtopic, subtopic_id, "Subtopic")
    ensure_can_edit(subtopic.topic.course, me)
    _remove(db, subtopic)


# --- materials --------------------------------------------------------------


@router.post(
    "/topics/{topic_id}/materials",
    response_model=MaterialRead,
    status_code=status.HTTP_201_CREATED,
)
def create_material(
    topic_id: int,
    payload: MaterialCreate,
    db: Session = Depends(get_db),
    me: User = Depends(require_teaching),
):
    topic = _get_or_404(db, Topic, topic_id, "Topic")
    ensure_can_edit(topic.course, me)

    if payload.subtopic_id is not None:
        subtopic = _get_or_404(db, Subtopic, payload.subtopic_id, "Subtopic")
        if subtopic.topic_id != topic.id:
            raise HTTPException(status_code=400, detail="Subtopic belongs to another topic")

    material = Material(
        topic_id=topic.id,
        subtopic_id=payload.subtopic_id,
        title=payload.title,
        type=payload.type.value,
        content=payload.content,
        url=payload.url,
    )
    _save(db, material)
    return material


@router.delete("/materials/{material_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_material(
    material_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(require_teaching),
):
    material = _get_or_404(db, Material, material_id, "Material")
    ensure_can_edit(material.topic.course, me)
    _remove(db, material)


# --- tests ------------------------------------------------------------------


@router.post(
    "/topics/{topic_id}/tests",
    response_model=TestSummary,
    status_code=status.HTTP_201_CREATED,
)
def create_test(
    topic_id: int,
    payload: TestCreate,
    db: Session = Depends(get_db),
    me: User = Depends(require_teaching),
):
    topic = _get_or_404(db, Topic, topic_id, "Topic")
    ensure_can_edit(topic.course, me)

    test = Test(topic_id=topic.id, **payload.model_dump())
    _save(db, test)
    return test


@router.post(
    "/tests/{test_id}/questions",
    response_model=QuestionAdminRead,
    status_code=status.HTTP_201_CREATED,
)
def add_question(
    test_id: int,
    payload: QuestionCreate,
    db: Session = Depends(get_db),
    me: User = Depends(require_teaching),
):
    test = _get_or_404(db, Test, test_id, "Test")
    ensure_can_edit(test.topic.course, me)

    question = TestQuestion(test_id=test.id, **payload.model_dump())
    _save(db, question)
    return question


@router.delete("/tests/{test_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_test(
    test_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(require_teaching),
):
    test = _get_or_404(db, Test, test_id, "Test")
    ensure_can_edit(test.topic.course, me)
    _remove(db, test)


@router.get("/tests/{test_id}", response_model=TestDetail)
def get_test(
    test_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    test = _get_or_404(db, Test, test_id, "Test")
    course = test.topic.course

    if not _can_edit(course, me) and not _has_active_enrollment(db, course.id, me.id):
        raise HTTPException(status_code=403, detail="Not enrolled in this course")
    return test


def _score(questions: list[TestQuestion], answers: dict[int, int]) -> int:
    """Percent of available points earned, rounded to a whole number."""
    total = sum(q.points for q in questions)
    earned = sum(q.points for q in questions if answers.get(q.id) == q.correct_option)
    return round(earned * 100 / total)


@router.post(
    "/tests/{test_id}/submit",
    response_model=TestSubmissionRead,
    status_code=status.HTTP_201_CREATED,
)
def submit_test(
    test_id: int,
    payload: TestSubmitRequest,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    test = _get_or_404(db, Test, test_id, "Test")
    if not _has_active_enrollment(db, test.topic.course_id, me.id):
        raise HTTPException(status_code=403, detail="Not enrolled in this course")
    if not test.questions:
        raise HTTPException(status_code=400, detail="Test has no questions")

    score = _score(test.questions, payload.answers)
    now = datetime.now(timezone.utc)

    # allow resubmission: update the existing row
    existing = (
        db.query(TestSubmission)
        .filter(
            and_(
                TestSubmission.test_id == test_id,
                TestSubmission.student_id == me.id,
            )
        )
        .first()
    )

    points_awarded = 0
    try:
        if existing:
            existing.answers = {str(k): v for k, v in payload.answers.items()}
            existing.score = score
            existing.submitted_at = now
            sub = existing
        else:
            sub = TestSubmission(
                test_id=test_id,
                student_id=me.id,
                answers={str(k): v for k, v in payload.answers.items()},
                score=score,
                submitted_at=now,
            )
            db.add(sub)
            db.flush()
            # only the first attempt earns points
            points_awarded = award_test_performance(db, me.id, score)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(sub)
    logger.info("User %s scored %s%% on test %s", me.id, score, test_id)

    # attach computed fields
    sub.passed = score >= test.passing_score
    sub.points_awarded = points_awarded
    return sub
