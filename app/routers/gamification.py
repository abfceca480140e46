from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.current_user import get_current_user
from app.core.deps import get_db
from app.core.enums import EnrollmentStatus
from app.core.permissions import require_admin
from app.models.enrollment import CourseEnrollment
from app.models.gamification import Achievement, PointTransaction, UserAchievement, UserPoints
from app.models.user import User
from app.schemas.gamification import (
    AchievementCreate,
    AchievementRead,
    AchievementStatus,
    GamificationProfile,
    LeaderboardEntry,
)
from app.services.gamification import get_or_create_points

router = APIRouter()


@router.get("/profile", response_model=GamificationProfile)
def my_profile(
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    up = get_or_create_points(db, me.id)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    achievements = (
        db.query(Achievement)
        .join(UserAchievement, UserAchievement.achievement_id == Achievement.id)
        .filter(UserAchievement.user_id == me.id)
        .order_by(UserAchievement.earned_at.asc(), Achievement.id.asc())
        .all()
    )
    recent = (
        db.query(PointTransaction)
        .filter(PointTransaction.user_id == me.id)
        .order_by(PointTransaction.created_at.desc(), PointTransaction.id.desc())
        .limit(10)
        .all()
    )

    return {
        "user_id": me.id,
        "points": up.points,
        "level": up.level,
        "experience": up.experience,
        "streak": up.streak,
        "last_activity_at": up.last_activity_at,
        "achievements": achievements,
        "recent_transactions": recent,
    }


@router.get("/achievements", response_model=list[AchievementStatus])
def list_achievements(
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    earned = {
        row.achievement_id
        for row in db.query(UserAchievement.achievement_id).filter(UserAchievement.user_id == me.id)
    }
    rows = (
        db.query(Achievement)
        .filter(Achievement.is_active.is_(True))
        .order_by(Achievement.id.asc())
        .all()
    )

    result = []
    for a in rows:
        item = AchievementRead.model_validate(a).model_dump()
        item["earned"] = a.id in earned
        result.append(item)
    return result


@router.post("/achievements", response_model=AchievementRead, status_code=status.HTTP_201_CREATED)
def create_achievement(
    payload: AchievementCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    if db.query(Achievement).filter(Achievement.name == payload.name).first():
        raise HTTPException(status_code=400, detail="Achievement name already exists")

    achievement = Achievement(**payload.model_dump())
    db.add(achievement)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(achievement)
    return achievement


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
def leaderboard(
    category: Literal["points", "streak", "enrollments"] = "points",
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    if category == "enrollments":
        score = func.count(CourseEnrollment.id).label("score")
        rows = (
            db.query(User.id, User.name, score)
            .join(CourseEnrollment, CourseEnrollment.student_id == User.id)
            .filter(CourseEnrollment.status == EnrollmentStatus.ACTIVE.value)
            .group_by(User.id, User.name)
            .order_by(score.desc(), User.id.asc())
            .limit(limit)
            .all()
        )
    else:
        column = UserPoints.points if category == "points" else UserPoints.streak
        rows = (
            db.query(User.id, User.name, column.label("score"))
            .join(UserPoints, UserPoints.user_id == User.id)
            .order_by(column.desc(), User.id.asc())
            .limit(limit)
            .all()
        )

    return [
        {"rank": i, "user_id": r.id, "name": r.name, "score": int(r.score or 0)}
        for i, r in enumerate(rows, start=1)
    ]
