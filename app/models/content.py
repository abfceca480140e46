from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from app.core.enums import MaterialType
from app.db.base_class import Base


class Topic(Base):
    __tablename__ = "topics"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    order = Column(Integer, nullable=False, default=0)

    course = relationship("Course", back_populates="topics")

    subtopics = relationship(
        "Subtopic", back_populates="topic", cascade="all, delete-orphan", order_by="Subtopic.order"
    )
    materials = relationship("Material", back_populates="topic", cascade="all, delete-orphan")
    tests = relationship("Test", back_populates="topic", cascade="all, delete-orphan")


class Subtopic(Base):
    __tablename__ = "subtopics"

    id = Column(Integer, primary_key=True, index=True)
    topic_id = Column(Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=True)
    order = Column(Integer, nullable=False, default=0)

    topic = relationship("Topic", back_populates="subtopics")
    materials = relationship("Material", back_populates="subtopic")


class Material(Base):
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True, index=True)
    topic_id = Column(Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True)
    subtopic_id = Column(Integer, ForeignKey("subtopics.id", ondelete="SET NULL"), nullable=True, index=True)

    title = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False, default=MaterialType.TEXT.value)
    content = Column(Text, nullable=True)
    url = Column(String(1024), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    topic = relationship("Topic", back_populates="materials")
    subtopic = relationship("Subtopic", back_populates="materials")


class Test(Base):
    __tablename__ = "tests"
    __test__ = False  # not a pytest class

    id = Column(Integer, primary_key=True, index=True)
    topic_id = Column(Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    time_limit_minutes = Column(Integer, nullable=True)
    passing_score = Column(Integer, nullable=False, default=60)  # percent

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    topic = relationship("Topic", back_populates="tests")

    questions = relationship(
        "TestQuestion", back_populates="test", cascade="all, delete-orphan", order_by="TestQuestion.id"
    )
    submissions = relationship("TestSubmission", back_populates="test", cascade="all, delete-orphan")


class TestQuestion(Base):
    __tablename__ = "test_questions"
    __test__ = False  # not a pytest class

    id = Column(Integer, primary_key=True, index=True)
    test_id = Column(Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True)

    text = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)  # list[str]
    correct_option = Column(Integer, nullable=False)  # index into options
    points = Column(Integer, nullable=False, default=1)

    test = relationship("Test", back_populates="questions")


class TestSubmission(Base):
    __tablename__ = "test_submissions"
    __test__ = False  # not a pytest class

    id = Column(Integer, primary_key=True, index=True)

    test_id = Column(Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    answers = Column(JSON, nullable=False)  # {question_id: option index}
    score = Column(Integer, nullable=False)  # percent of available points

    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("test_id", "student_id", name="uq_test_submission_test_student"),
    )

    test = relationship("Test", back_populates="submissions")
    student = relationship("User", back_populates="test_submissions")
