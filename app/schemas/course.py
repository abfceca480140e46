from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.core.enums import CourseStatus
from app.schemas.content import TopicRead


class CourseCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price: int = Field(default=0, ge=0)
    max_students: int | None = Field(default=None, ge=1)
    status: CourseStatus = CourseStatus.DRAFT


class CourseUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    price: int | None = Field(default=None, ge=0)
    max_students: int | None = Field(default=None, ge=1)
    status: CourseStatus | None = None

    @field_validator("title", "price", "status")
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class CourseRead(BaseModel):
    id: int
    title: str
    description: str | None = None
    price: int
    max_students: int | None = None
    status: str
    creator_id: int | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class CourseDetail(CourseRead):
    topics: list[TopicRead] = []
