from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from app.core.enums import MaterialType


class TopicCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    order: int = 0


class SubtopicCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: str | None = None
    order: int = 0


class MaterialCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    type: MaterialType = MaterialType.TEXT
    content: str | None = None
    url: str | None = None
    subtopic_id: int | None = None


class TestCreate(BaseModel):
    __test__ = False  # not a pytest class

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    time_limit_minutes: int | None = Field(default=None, ge=1)
    passing_score: int = Field(default=60, ge=0, le=100)


class QuestionCreate(BaseModel):
    text: str = Field(min_length=1)
    options: list[str] = Field(min_length=2)
    correct_option: int = Field(ge=0)
    points: int = Field(default=1, ge=1)

    @model_validator(mode="after")
    def correct_option_in_range(self):
        if self.correct_option >= len(self.options):
            raise ValueError("correct_option must index into options")
        return self


class SubtopicRead(BaseModel):
    id: int
    topic_id: int
    title: str
    content: str | None = None
    order: int

    class Config:
        from_attributes = True


class MaterialRead(BaseModel):
    id: int
    topic_id: int
    subtopic_id: int | None = None
    title: str
    type: str
    content: str | None = None
    url: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class TestSummary(BaseModel):
    __test__ = False  # not a pytest class

    id: int
    topic_id: int
    title: str
    description: str | None = None
    time_limit_minutes: int | None = None
    passing_score: int

    class Config:
        from_attributes = True


class QuestionRead(BaseModel):
    """A question as a student sees it, without the answer."""

    id: int
    text: str
    options: list[str]
    points: int

    class Config:
        from_attributes = True


class QuestionAdminRead(QuestionRead):
    correct_option: int


class TestDetail(TestSummary):
    questions: list[QuestionRead] = []


class TopicRead(BaseModel):
    id: int
    course_id: int
    title: str
    description: str | None = None
    order: int
    subtopics: list[SubtopicRead] = []
    materials: list[MaterialRead] = []
    tests: list[TestSummary] = []

    class Config:
        from_attributes = True
