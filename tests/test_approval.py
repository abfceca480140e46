import pytest
from sqlalchemy.exc import IntegrityError

from app.core.config import settings
from app.core.security import verify_password
from app.models.course import Course
from app.models.enrollment import CourseEnrollment
from app.models.enrollment_request import EnrollmentRequest
from app.models.payment import Payment
from app.models.user import User
from app.services import enrollment as enrollment_service


def submit(client, course_id: int, email: str = "aru@example.com", **extra) -> int:
    payload = {
        "course_id": course_id,
        "student_name": "Aru Sultan",
        "student_email": email,
        "student_phone": "+7 700 000 0000",
        "preferred_contact": "PHONE",
    }
    payload.update(extra)
    r = client.post("/enrollment-requests", json=payload)
    assert r.status_code == 201, r.text
    return r.json()["id"]


def add_enrollment(db, student_id: int, course_id: int, tutor_id: int, status: str = "ACTIVE"):
    e = CourseEnrollment(student_id=student_id, course_id=course_id, tutor_id=tutor_id, status=status)
    db.add(e)
    db.commit()
    return e


def test_approve_creates_student_enrollment_and_payment(client, db, login, seed_data):
    request_id = submit(client, seed_data["course"])
    admin = login("admin@example.com")

    r = client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=admin)
    assert r.status_code == 200, r.text
    body = r.json()

    assert body["request"]["status"] == "APPROVED"
    assert body["request"]["processed_by_id"] == seed_data["admin"]
    assert body["request"]["processed_at"] is not None

    enrollment = body["enrollment"]
    assert enrollment["status"] == "ACTIVE"
    assert enrollment["course_id"] == seed_data["course"]
    # no tutor chosen: the course creator teaches
    assert enrollment["tutor_id"] == seed_data["tutor"]
    assert enrollment["payment"]["status"] == "PAID"
    assert enrollment["payment"]["method"] == "MANUAL"
    assert enrollment["payment"]["amount"] == 50000

    student = db.query(User).filter(User.email == "aru@example.com").one()
    assert student.role == "STUDENT"
    assert student.name == "Aru Sultan"
    assert not verify_password("", student.hashed_password)
    assert body["request"]["student_id"] == student.id
    assert body["request"]["enrollment_id"] == enrollment["id"]

    assert db.query(Payment).filter(Payment.enrollment_id == enrollment["id"]).count() == 1


def test_approve_reuses_existing_account(client, db, login, seed_data):
    request_id = submit(client, seed_data["course"], email="Student1@Example.com")
    admin = login("admin@example.com")

    r = client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=admin)
    assert r.status_code == 200, r.text
    assert r.json()["enrollment"]["student_id"] == seed_data["student"]
    assert db.query(User).count() == 7


def test_approve_uses_selected_tutor(client, login, seed_data):
    request_id = submit(client, seed_data["course"], selected_tutor_id=seed_data["tutor2"])
    owner = login("owner@example.com")

    r = client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=owner)
    assert r.status_code == 200, r.text
    assert r.json()["enrollment"]["tutor_id"] == seed_data["tutor2"]


def test_legacy_body_form_approves(client, login, seed_data):
    request_id = submit(client, seed_data["course"])
    admin = login("admin@example.com")

    r = client.post("/admin/enrollment-requests/approve", headers=admin, json={"request_id": request_id})
    assert r.status_code == 200, r.text
    assert r.json()["request"]["status"] == "APPROVED"


def test_second_approval_is_rejected(client, db, login, seed_data):
    request_id = submit(client, seed_data["course"])
    admin = login("admin@example.com")

    r1 = client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=admin)
    assert r1.status_code == 200

    r2 = client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=admin)
    assert r2.status_code == 400
    assert r2.json()["detail"] == "Request has already been processed"
    assert db.query(CourseEnrollment).count() == 1
    assert db.query(Payment).count() == 1


def test_approve_unknown_request_is_404(client, login):
    admin = login("admin@example.com")
    r = client.post("/admin/enrollment-requests/99999/approve", headers=admin)
    assert r.status_code == 404


def test_already_enrolled_student_is_not_enrolled_twice(client, db, login, seed_data):
    add_enrollment(db, seed_data["student"], seed_data["course"], seed_data["tutor"])
    request_id = submit(client, seed_data["course"], email="student1@example.com")
    admin = login("admin@example.com")

    r = client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=admin)
    assert r.status_code == 400
    assert r.json()["detail"] == "Student is already enrolled in this course"

    db.expire_all()
    assert db.get(EnrollmentRequest, request_id).status == "PENDING"
    assert db.query(CourseEnrollment).count() == 1
    assert db.query(Payment).count() == 0


def test_cancelled_enrollment_allows_reenrollment(client, db, login, seed_data):
    add_enrollment(db, seed_data["student"], seed_data["course"], seed_data["tutor"], status="CANCELLED")
    request_id = submit(client, seed_data["course"], email="student1@example.com")
    admin = login("admin@example.com")

    r = client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=admin)
    assert r.status_code == 200, r.text


def test_tutor_at_capacity_blocks_approval_without_writes(client, db, login, seed_data, monkeypatch):
    monkeypatch.setattr(settings, "tutor_capacity", 1)
    add_enrollment(db, seed_data["student2"], seed_data["course"], seed_data["tutor"])

    request_id = submit(client, seed_data["course"])
    admin = login("admin@example.com")
    users_before = db.query(User).count()

    r = client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=admin)
    assert r.status_code == 400
    assert r.json()["detail"] == "Tutor has reached maximum student capacity (1 students)"

    db.expire_all()
    assert db.get(EnrollmentRequest, request_id).status == "PENDING"
    assert db.query(User).count() == users_before
    assert db.query(CourseEnrollment).count() == 1
    assert db.query(Payment).count() == 0

    # freeing a seat lets the same request through
    enrollment_id = db.query(CourseEnrollment.id).scalar()
    r = client.post(f"/admin/enrollments/{enrollment_id}/cancel", headers=admin)
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "CANCELLED"

    r = client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=admin)
    assert r.status_code == 200, r.text


def test_default_capacity_is_forty(client, db, login, seed_data):
    for i in range(40):
        u = User(email=f"s{i}@example.com", name=f"S{i}", role="STUDENT", hashed_password="x")
        db.add(u)
        db.flush()
        db.add(CourseEnrollment(student_id=u.id, course_id=seed_data["course"], tutor_id=seed_data["tutor"]))
    db.commit()

    request_id = submit(client, seed_data["course"])
    admin = login("admin@example.com")
    r = client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=admin)
    assert r.status_code == 400
    assert "capacity (40 students)" in r.json()["detail"]


def test_course_max_students_blocks_approval(client, db, login, seed_data):
    course = db.get(Course, seed_data["course"])
    course.max_students = 1
    db.commit()
    add_enrollment(db, seed_data["student2"], seed_data["course"], seed_data["tutor2"])

    request_id = submit(client, seed_data["course"])
    admin = login("admin@example.com")
    r = client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=admin)
    assert r.status_code == 400
    assert r.json()["detail"] == "Course has reached its maximum number of students"


def test_request_cannot_name_a_non_tutor(client, seed_data):
    r = client.post(
        "/enrollment-requests",
        json={
            "course_id": seed_data["course"],
            "student_name": "Aru Sultan",
            "student_email": "aru@example.com",
            "student_phone": "+7 700 000 0000",
            "preferred_contact": "PHONE",
            "selected_tutor_id": seed_data["student2"],
        },
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Selected user is not a tutor"


def test_approval_rechecks_selected_tutor_role(client, db, login, seed_data):
    request_id = submit(client, seed_data["course"], selected_tutor_id=seed_data["tutor2"])
    admin = login("admin@example.com")

    # tutor2 has no students yet, so the demotion goes through
    r = client.patch(f"/admin/users/{seed_data['tutor2']}", headers=admin, json={"role": "STUDENT"})
    assert r.status_code == 200

    r = client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=admin)
    assert r.status_code == 400
    assert r.json()["detail"] == "Selected user is not a tutor"

    db.expire_all()
    assert db.get(EnrollmentRequest, request_id).status == "PENDING"
    assert db.query(CourseEnrollment).count() == 0


def test_staff_email_is_not_enrolled_as_student(client, db, login, seed_data):
    request_id = submit(client, seed_data["course"], email="tutor2@example.com")
    admin = login("admin@example.com")

    r = client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=admin)
    assert r.status_code == 400
    assert r.json()["detail"] == "Selected user is not a student"

    db.expire_all()
    assert db.get(EnrollmentRequest, request_id).status == "PENDING"
    assert db.query(CourseEnrollment).count() == 0
    assert db.query(Payment).count() == 0


def test_student_created_on_approval_can_log_in_after_password_is_set(client, login, seed_data):
    request_id = submit(client, seed_data["course"])
    admin = login("admin@example.com")
    r = client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=admin)
    student_id = r.json()["request"]["student_id"]

    r = client.post(f"/admin/users/{student_id}/password", headers=admin, json={"password": "short"})
    assert r.status_code == 400

    r = client.post(
        f"/admin/users/{student_id}/password",
        headers=login("manager@example.com"),
        json={"password": "first-login-1"},
    )
    assert r.status_code == 403

    r = client.post(f"/admin/users/{student_id}/password", headers=admin, json={"password": "first-login-1"})
    assert r.status_code == 204

    student = login("aru@example.com", "first-login-1")
    r = client.get("/enrollments/me", headers=student)
    assert [e["course_id"] for e in r.json()] == [seed_data["course"]]


def test_approval_locks_course_then_tutor(client, login, seed_data, monkeypatch):
    locked = []
    lock_row = enrollment_service._lock_row

    def recording_lock(db, model, row_id):
        locked.append((model.__tablename__, row_id))
        return lock_row(db, model, row_id)

    monkeypatch.setattr(enrollment_service, "_lock_row", recording_lock)

    request_id = submit(client, seed_data["course"], selected_tutor_id=seed_data["tutor2"])
    r = client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=login("admin@example.com"))
    assert r.status_code == 200, r.text
    assert locked == [("courses", seed_data["course"]), ("users", seed_data["tutor2"])]


def test_unique_index_conflict_reports_already_enrolled(client, db, login, seed_data, monkeypatch):
    add_enrollment(db, seed_data["student"], seed_data["course"], seed_data["tutor"])
    request_id = submit(client, seed_data["course"], email="student1@example.com")
    admin = login("admin@example.com")

    # let the duplicate slip past the read check so only the index catches it
    monkeypatch.setattr(enrollment_service, "_has_active_enrollment", lambda *args: False)

    r = client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=admin)
    assert r.status_code == 400
    assert r.json()["detail"] == "Student is already enrolled in this course"

    r = client.post(
        "/admin/students/enroll",
        headers=admin,
        json={
            "student_id": seed_data["student"],
            "course_id": seed_data["course"],
            "tutor_id": seed_data["tutor2"],
            "payment_method": "CARD",
        },
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Student is already enrolled in this course"

    db.expire_all()
    assert db.get(EnrollmentRequest, request_id).status == "PENDING"
    assert db.query(CourseEnrollment).count() == 1
    assert db.query(Payment).count() == 0


@pytest.mark.parametrize("email", ["manager@example.com", "tutor1@example.com", "student1@example.com"])
def test_only_admin_or_owner_can_approve(client, login, seed_data, email):
    request_id = submit(client, seed_data["course"])
    r = client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=login(email))
    assert r.status_code == 403


def test_anonymous_cannot_approve(client, seed_data):
    request_id = submit(client, seed_data["course"])
    r = client.post(f"/admin/enrollment-requests/{request_id}/approve")
    assert r.status_code == 401


def test_reject_only_pending(client, login, seed_data):
    request_id = submit(client, seed_data["course"])
    admin = login("admin@example.com")

    r = client.post(f"/admin/enrollment-requests/{request_id}/reject", headers=admin)
    assert r.status_code == 200
    assert r.json()["status"] == "REJECTED"

    r = client.post(f"/admin/enrollment-requests/{request_id}/reject", headers=admin)
    assert r.status_code == 400

    r = client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=admin)
    assert r.status_code == 400


def test_active_enrollment_is_unique_per_student_and_course(db, seed_data):
    add_enrollment(db, seed_data["student"], seed_data["course"], seed_data["tutor"])
    db.add(
        CourseEnrollment(
            student_id=seed_data["student"],
            course_id=seed_data["course"],
            tutor_id=seed_data["tutor2"],
            status="ACTIVE",
        )
    )
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_direct_enroll(client, db, login, seed_data):
    admin = login("admin@example.com")
    r = client.post(
        "/admin/students/enroll",
        headers=admin,
        json={
            "student_id": seed_data["student"],
            "course_id": seed_data["course"],
            "tutor_id": seed_data["tutor2"],
            "payment_method": "KASPI",
        },
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["tutor_id"] == seed_data["tutor2"]
    assert body["payment"]["method"] == "KASPI"
    assert body["payment"]["amount"] == 50000

    # same pair again is a duplicate
    r = client.post(
        "/admin/students/enroll",
        headers=admin,
        json={
            "student_id": seed_data["student"],
            "course_id": seed_data["course"],
            "tutor_id": seed_data["tutor"],
            "payment_method": "CARD",
        },
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Student is already enrolled in this course"


@pytest.mark.parametrize(
    "field, value, detail",
    [
        ("student_id", "tutor", "Selected user is not a student"),
        ("tutor_id", "student2", "Selected user is not a tutor"),
        ("course_id", "draft_course", "Course is not active"),
    ],
)
def test_direct_enroll_validates_roles_and_course(client, login, seed_data, field, value, detail):
    payload = {
        "student_id": seed_data["student"],
        "course_id": seed_data["course"],
        "tutor_id": seed_data["tutor"],
        "payment_method": "MANUAL",
    }
    payload[field] = seed_data[value]

    r = client.post("/admin/students/enroll", headers=login("admin@example.com"), json=payload)
    assert r.status_code == 400
    assert r.json()["detail"] == detail


def test_enrollment_and_payment_views(client, login, seed_data):
    request_id = submit(client, seed_data["course"], email="student1@example.com")
    admin = login("admin@example.com")
    client.post(f"/admin/enrollment-requests/{request_id}/approve", headers=admin)

    student = login("student1@example.com")
    r = client.get("/enrollments/me", headers=student)
    assert [e["course_id"] for e in r.json()] == [seed_data["course"]]

    r = client.get("/payments/me", headers=student)
    assert [p["amount"] for p in r.json()] == [50000]

    r = client.get(f"/admin/courses/{seed_data['course']}/enrollments", headers=admin)
    assert r.status_code == 200
    assert r.json()[0]["student"]["email"] == "student1@example.com"

    r = client.get("/admin/payments", headers=admin)
    assert len(r.json()) == 1

    r = client.get("/admin/payments", headers=student)
    assert r.status_code == 403


def test_cancel_twice_is_rejected(client, db, login, seed_data):
    e = add_enrollment(db, seed_data["student"], seed_data["course"], seed_data["tutor"])
    admin = login("admin@example.com")

    assert client.post(f"/admin/enrollments/{e.id}/cancel", headers=admin).status_code == 200
    assert client.post(f"/admin/enrollments/{e.id}/cancel", headers=admin).status_code == 400
