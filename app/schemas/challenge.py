from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from app.core.enums import ChallengeType


class ChallengeCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    type: ChallengeType = ChallengeType.SPECIAL
    start_at: datetime
    end_at: datetime
    reward_points: int = Field(default=0, ge=0)
    max_participants: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_at <= self.start_at:
            raise ValueError("end_at must be after start_at")
        return self


class ChallengeRead(BaseModel):
    id: int
    title: str
    description: str
    type: str
    start_at: datetime
    end_at: datetime
    reward_points: int
    max_participants: int | None = None
    is_active: bool
    created_by_id: int | None = None
    participants: int = 0

    class Config:
        from_attributes = True


class ChallengeSubmit(BaseModel):
    content: str = Field(min_length=1)


class ChallengeSubmissionRead(BaseModel):
    id: int
    challenge_id: int
    user_id: int
    content: str
    submitted_at: datetime
    points_awarded: int = 0

    class Config:
        from_attributes = True
