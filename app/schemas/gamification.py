from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class AchievementCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    category: str = "GENERAL"
    criteria_type: Literal[
        "total_points",
        "streak_days",
        "active_enrollments",
        "test_score_average",
        "tests_taken",
    ]
    criteria_value: int
    condition: Literal["gte", "lte", "eq"] = "gte"
    points: int = Field(default=0, ge=0)


class AchievementRead(BaseModel):
    id: int
    name: str
    description: str | None = None
    category: str
    criteria_type: str
    criteria_value: int
    condition: str
    points: int
    is_active: bool

    class Config:
        from_attributes = True


class AchievementStatus(AchievementRead):
    earned: bool = False


class PointTransactionRead(BaseModel):
    id: int
    points: int
    category: str
    reason: str
    created_at: datetime

    class Config:
        from_attributes = True


class GamificationProfile(BaseModel):
    user_id: int
    points: int
    level: int
    experience: int
    streak: int
    last_activity_at: datetime | None = None
    achievements: list[AchievementRead]
    recent_transactions: list[PointTransactionRead]


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: int
    name: str | None
    score: int
