from datetime import datetime

from pydantic import BaseModel


class TestSubmitRequest(BaseModel):
    __test__ = False  # not a pytest class

    # question id -> chosen option index
    answers: dict[int, int]


class TestSubmissionRead(BaseModel):
    __test__ = False  # not a pytest class

    id: int
    test_id: int
    student_id: int
    score: int
    submitted_at: datetime

    # computed for the response
    passed: bool = False
    points_awarded: int = 0

    class Config:
        from_attributes = True
