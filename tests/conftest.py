import os

TEST_DB_FILE = "test_prep_academy.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"

# must be set before app settings are imported
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["AUTO_CREATE_SCHEMA"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app.core.deps import get_db  # noqa: E402
from app.core.enums import CourseStatus, UserRole  # noqa: E402
from app.core.security import hash_password  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import make_engine  # noqa: E402
from app.main import app  # noqa: E402
from app.models.course import Course  # noqa: E402
from app.models.user import User  # noqa: E402

PASSWORD = "password123"
PASSWORD_HASH = hash_password(PASSWORD)

engine = make_engine(TEST_DB_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest.fixture(autouse=True)
def seed_data():
    """Seed a clean minimal dataset for each test. Yields the seeded ids."""
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()

        # Users
        users = {
            "student": User(email="student1@example.com", name="Student One", role=UserRole.STUDENT.value),
            "student2": User(email="student2@example.com", name="Student Two", role=UserRole.STUDENT.value),
            "tutor": User(email="tutor1@example.com", name="Tutor One", role=UserRole.TUTOR.value),
            "tutor2": User(email="tutor2@example.com", name="Tutor Two", role=UserRole.TUTOR.value),
            "admin": User(email="admin@example.com", name="Admin", role=UserRole.ADMIN.value),
            "owner": User(email="owner@example.com", name="Owner", role=UserRole.OWNER.value),
            "manager": User(email="manager@example.com", name="Manager", role=UserRole.MANAGER.value),
        }
        for u in users.values():
            u.hashed_password = PASSWORD_HASH
        db.add_all(users.values())
        db.commit()

        # Courses
        course = Course(
            title="IELTS Preparation",
            description="Band 7+ in twelve weeks",
            price=50000,
            status=CourseStatus.ACTIVE.value,
            creator_id=users["tutor"].id,
        )
        draft = Course(
            title="SAT Math",
            price=30000,
            status=CourseStatus.DRAFT.value,
            creator_id=users["tutor"].id,
        )
        db.add_all([course, draft])
        db.commit()

        ids = {name: u.id for name, u in users.items()}
        ids["course"] = course.id
        ids["draft_course"] = draft.id
        yield ids
    finally:
        db.close()


@pytest.fixture()
def client():
    """Test client that uses the test DB session via dependency override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def login(client):
    """Log in through the API and return bearer headers."""

    def _login(email: str, password: str = PASSWORD) -> dict:
        r = client.post("/auth/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['access_token']}"}

    return _login
