"""
Points, levels, streaks and achievements.

Functions here stage changes on the session and flush; the caller commits.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.enums import EnrollmentStatus, PointCategory
from app.models.content import TestSubmission
from app.models.enrollment import CourseEnrollment
from app.models.gamification import Achievement, PointTransaction, UserAchievement, UserPoints

logger = logging.getLogger(__name__)

CONDITIONS = {
    "gte": lambda actual, expected: actual >= expected,
    "lte": lambda actual, expected: actual <= expected,
    "eq": lambda actual, expected: actual == expected,
}

CRITERIA_TYPES = (
    "total_points",
    "streak_days",
    "active_enrollments",
    "test_score_average",
    "tests_taken",
)

# (minimum score, points awarded), checked top-down
TEST_SCORE_TIERS = ((90, 100), (80, 75), (70, 50), (60, 25))


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def calculate_level(experience: int) -> int:
    return experience // settings.level_experience + 1


def get_or_create_points(db: Session, user_id: int) -> UserPoints:
    up = db.query(UserPoints).filter(UserPoints.user_id == user_id).first()
    if up is None:
        up = UserPoints(user_id=user_id, points=0, level=1, experience=0, streak=0)
        db.add(up)
        db.flush()
    return up


def award_points(
    db: Session,
    user_id: int,
    points: int,
    category: PointCategory,
    reason: str,
    *,
    check_achievements: bool = True,
) -> UserPoints:
    up = get_or_create_points(db, user_id)

    db.add(PointTransaction(user_id=user_id, points=points, category=category.value, reason=reason))
    up.points += points
    up.experience += abs(points)
    up.level = max(up.level, calculate_level(up.experience))
    db.flush()

    logger.info("Awarded %s points to user %s (%s)", points, user_id, category.value)

    if check_achievements:
        evaluate_achievements(db, user_id)
    return up


def points_for_score(score: int) -> int:
    for minimum, points in TEST_SCORE_TIERS:
        if score >= minimum:
            return points
    return 0


def award_test_performance(db: Session, user_id: int, score: int) -> int:
    points = points_for_score(score)
    if points > 0:
        award_points(db, user_id, points, PointCategory.TEST_PERFORMANCE, f"Test Performance: {score}%")
    return points


def record_daily_activity(db: Session, user_id: int, now: datetime | None = None) -> int:
    """Advance the daily streak. Returns the streak bonus awarded, if any."""
    now = now or datetime.now(timezone.utc)
    up = get_or_create_points(db, user_id)

    bonus = 0
    if up.last_activity_at is None:
        up.streak = 1
    else:
        days = (now.date() - as_utc(up.last_activity_at).date()).days
        if days == 1:
            up.streak += 1
            bonus = min(up.streak * settings.streak_bonus_per_day, settings.streak_bonus_cap)
        elif days > 1:
            up.streak = 1

    up.last_activity_at = now
    db.flush()

    if bonus > 0:
        award_points(
            db, user_id, bonus, PointCategory.STREAK_BONUS, f"Daily Login Streak ({up.streak} days)"
        )
    else:
        evaluate_achievements(db, user_id)
    return bonus


def criteria_value(db: Session, user_id: int, criteria_type: str) -> int:
    if criteria_type == "total_points":
        return get_or_create_points(db, user_id).points
    if criteria_type == "streak_days":
        return get_or_create_points(db, user_id).streak
    if criteria_type == "active_enrollments":
        return (
            db.query(func.count(CourseEnrollment.id))
            .filter(
                CourseEnrollment.student_id == user_id,
                CourseEnrollment.status == EnrollmentStatus.ACTIVE.value,
            )
            .scalar()
        ) or 0
    if criteria_type == "test_score_average":
        avg = db.query(func.avg(TestSubmission.score)).filter(TestSubmission.student_id == user_id).scalar()
        return int(avg) if avg is not None else 0
    if criteria_type == "tests_taken":
        return (
            db.query(func.count(TestSubmission.id)).filter(TestSubmission.student_id == user_id).scalar()
        ) or 0
    return 0


def evaluate_achievements(db: Session, user_id: int) -> list[Achievement]:
    """Grant every active achievement the user now qualifies for."""
    earned: list[Achievement] = []

    # achievement points can unlock further achievements
    while True:
        owned = {
            row.achievement_id
            for row in db.query(UserAchievement.achievement_id).filter(UserAchievement.user_id == user_id)
        }
        candidates = (
            db.query(Achievement)
            .filter(Achievement.is_active.is_(True))
            .order_by(Achievement.id.asc())
            .all()
        )

        newly = []
        for achievement in candidates:
            if achievement.id in owned:
                continue
            check = CONDITIONS.get(achievement.condition)
            if check is None:
                continue
            actual = criteria_value(db, user_id, achievement.criteria_type)
            if check(actual, achievement.criteria_value):
                newly.append(achievement)

        if not newly:
            return earned

        for achievement in newly:
            db.add(UserAchievement(user_id=user_id, achievement_id=achievement.id))
            db.flush()
            logger.info("User %s earned achievement %s", user_id, achievement.id)
            if achievement.points:
                award_points(
                    db,
                    user_id,
                    achievement.points,
                    PointCategory.ACHIEVEMENT,
                    f"Achievement: {achievement.name}",
                    check_achievements=False,
                )
        earned.extend(newly)
