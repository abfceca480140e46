from datetime import datetime, timedelta, timezone

import pytest

from app.core.enums import PointCategory
from app.models.enrollment import CourseEnrollment
from app.models.gamification import Achievement, PointTransaction, UserAchievement
from app.services.gamification import (
    award_points,
    calculate_level,
    get_or_create_points,
    points_for_score,
    record_daily_activity,
)

DAY = timedelta(days=1)
MONDAY = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("experience, level", [(0, 1), (999, 1), (1000, 2), (2500, 3)])
def test_calculate_level(experience, level):
    assert calculate_level(experience) == level


@pytest.mark.parametrize("score, points", [(100, 100), (90, 100), (85, 75), (70, 50), (60, 25), (59, 0)])
def test_points_for_score(score, points):
    assert points_for_score(score) == points


def test_streak_grows_on_consecutive_days(db, seed_data):
    uid = seed_data["student"]

    assert record_daily_activity(db, uid, MONDAY) == 0
    assert get_or_create_points(db, uid).streak == 1

    # same day again changes nothing
    assert record_daily_activity(db, uid, MONDAY + timedelta(hours=5)) == 0
    assert get_or_create_points(db, uid).streak == 1

    assert record_daily_activity(db, uid, MONDAY + DAY) == 20
    assert record_daily_activity(db, uid, MONDAY + 2 * DAY) == 30
    db.commit()

    up = get_or_create_points(db, uid)
    assert up.streak == 3
    assert up.points == 50
    reasons = [
        t.reason
        for t in db.query(PointTransaction).filter(PointTransaction.user_id == uid).order_by(PointTransaction.id)
    ]
    assert reasons == ["Daily Login Streak (2 days)", "Daily Login Streak (3 days)"]


def test_missed_day_resets_streak(db, seed_data):
    uid = seed_data["student"]
    record_daily_activity(db, uid, MONDAY)
    record_daily_activity(db, uid, MONDAY + DAY)

    assert record_daily_activity(db, uid, MONDAY + 3 * DAY) == 0
    assert get_or_create_points(db, uid).streak == 1


def test_streak_bonus_is_capped(db, seed_data):
    uid = seed_data["student"]
    up = get_or_create_points(db, uid)
    up.streak = 14
    up.last_activity_at = MONDAY
    db.flush()

    assert record_daily_activity(db, uid, MONDAY + DAY) == 100
    assert up.streak == 15


def test_negative_points_still_build_experience(db, seed_data):
    uid = seed_data["student"]
    award_points(db, uid, 900, PointCategory.MANUAL, "Olympiad prize")
    up = award_points(db, uid, -200, PointCategory.MANUAL, "Correction")
    db.commit()

    assert up.points == 700
    assert up.experience == 1100
    assert up.level == 2


def test_achievement_points_can_unlock_more_achievements(db, seed_data):
    uid = seed_data["student"]
    db.add_all(
        [
            Achievement(name="Century", criteria_type="total_points", criteria_value=100, condition="gte", points=50),
            Achievement(name="Gold", criteria_type="total_points", criteria_value=150, condition="gte", points=10),
            Achievement(
                name="Retired",
                criteria_type="total_points",
                criteria_value=0,
                condition="gte",
                points=5,
                is_active=False,
            ),
        ]
    )
    db.commit()

    up = award_points(db, uid, 100, PointCategory.MANUAL, "Bonus")
    db.commit()

    earned = {
        ua.achievement.name for ua in db.query(UserAchievement).filter(UserAchievement.user_id == uid)
    }
    assert earned == {"Century", "Gold"}
    assert up.points == 160

    # already earned achievements are not granted twice
    award_points(db, uid, 1, PointCategory.MANUAL, "Nudge")
    db.commit()
    assert db.query(UserAchievement).filter(UserAchievement.user_id == uid).count() == 2


def test_login_counts_as_daily_activity(client, login):
    headers = login("student1@example.com")
    r = client.get("/gamification/profile", headers=headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["streak"] == 1
    assert body["level"] == 1
    assert body["last_activity_at"] is not None


def test_achievement_admin_api(client, login):
    admin = login("admin@example.com")
    payload = {"name": "Streak Master", "criteria_type": "streak_days", "criteria_value": 7, "points": 100}

    r = client.post("/gamification/achievements", headers=admin, json=payload)
    assert r.status_code == 201, r.text
    assert r.json()["condition"] == "gte"

    r = client.post("/gamification/achievements", headers=admin, json=payload)
    assert r.status_code == 400

    r = client.post(
        "/gamification/achievements",
        headers=admin,
        json={**payload, "name": "Odd", "criteria_type": "moon_phase"},
    )
    assert r.status_code == 400

    r = client.post("/gamification/achievements", headers=login("student1@example.com"), json=payload)
    assert r.status_code == 403


def test_achievement_list_marks_earned(client, db, login, seed_data):
    db.add_all(
        [
            Achievement(name="First Step", criteria_type="streak_days", criteria_value=1, points=10),
            Achievement(name="Marathon", criteria_type="streak_days", criteria_value=30, points=500),
        ]
    )
    db.commit()

    # logging in starts a one-day streak
    student = login("student1@example.com")
    rows = {a["name"]: a["earned"] for a in client.get("/gamification/achievements", headers=student).json()}
    assert rows == {"First Step": True, "Marathon": False}

    profile = client.get("/gamification/profile", headers=student).json()
    assert [a["name"] for a in profile["achievements"]] == ["First Step"]
    assert profile["points"] == 10


def test_points_leaderboard(client, db, login, seed_data):
    award_points(db, seed_data["student"], 300, PointCategory.MANUAL, "a")
    award_points(db, seed_data["student2"], 500, PointCategory.MANUAL, "b")
    db.commit()

    r = client.get("/gamification/leaderboard", headers=login("student1@example.com"), params={"limit": 2})
    assert r.status_code == 200
    assert [(e["rank"], e["user_id"], e["score"]) for e in r.json()] == [
        (1, seed_data["student2"], 500),
        (2, seed_data["student"], 300),
    ]


def test_enrollments_leaderboard(client, db, login, seed_data):
    db.add(
        CourseEnrollment(student_id=seed_data["student2"], course_id=seed_data["course"], tutor_id=seed_data["tutor"])
    )
    db.add(
        CourseEnrollment(
            student_id=seed_data["student"],
            course_id=seed_data["course"],
            tutor_id=seed_data["tutor"],
            status="CANCELLED",
        )
    )
    db.commit()

    r = client.get(
        "/gamification/leaderboard",
        headers=login("student1@example.com"),
        params={"category": "enrollments"},
    )
    assert [(e["user_id"], e["score"]) for e in r.json()] == [(seed_data["student2"], 1)]

    r = client.get(
        "/gamification/leaderboard",
        headers=login("student1@example.com"),
        params={"category": "wealth"},
    )
    assert r.status_code == 400


# --- challenges ---------------------------------------------------------------


def challenge_payload(**overrides) -> dict:
    now = datetime.now(timezone.utc)
    data = {
        "title": "Essay sprint",
        "description": "Write a 250-word essay",
        "type": "WEEKLY",
        "start_at": (now - timedelta(hours=1)).isoformat(),
        "end_at": (now + timedelta(days=6)).isoformat(),
        "reward_points": 40,
    }
    data.update(overrides)
    return data


def test_challenge_submission_awards_points(client, login):
    admin = login("admin@example.com")
    challenge = client.post("/challenges", headers=admin, json=challenge_payload()).json()

    student = login("student1@example.com")
    r = client.get("/challenges", headers=student)
    assert [c["id"] for c in r.json()] == [challenge["id"]]

    r = client.post(f"/challenges/{challenge['id']}/submit", headers=student, json={"content": "My essay"})
    assert r.status_code == 201, r.text
    assert r.json()["points_awarded"] == 40

    r = client.post(f"/challenges/{challenge['id']}/submit", headers=student, json={"content": "Again"})
    assert r.status_code == 400
    assert r.json()["detail"] == "You have already submitted this challenge"

    profile = client.get("/gamification/profile", headers=student).json()
    assert profile["points"] == 40
    assert profile["recent_transactions"][0]["category"] == "CHALLENGE"

    r = client.get("/challenges", headers=student)
    assert r.json()[0]["participants"] == 1


def test_challenge_capacity(client, login):
    admin = login("admin@example.com")
    challenge = client.post("/challenges", headers=admin, json=challenge_payload(max_participants=1)).json()

    r = client.post(
        f"/challenges/{challenge['id']}/submit", headers=login("student1@example.com"), json={"content": "x"}
    )
    assert r.status_code == 201

    r = client.post(
        f"/challenges/{challenge['id']}/submit", headers=login("student2@example.com"), json={"content": "y"}
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Challenge is full"


def test_inactive_and_future_challenges(client, login):
    admin = login("admin@example.com")
    now = datetime.now(timezone.utc)
    future = client.post(
        "/challenges",
        headers=admin,
        json=challenge_payload(
            title="Next week",
            start_at=(now + timedelta(days=7)).isoformat(),
            end_at=(now + timedelta(days=14)).isoformat(),
        ),
    ).json()
    current = client.post("/challenges", headers=admin, json=challenge_payload()).json()

    r = client.patch(f"/challenges/{current['id']}/toggle", headers=admin)
    assert r.json()["is_active"] is False

    student = login("student1@example.com")
    assert client.get("/challenges", headers=student).json() == []
    assert len(client.get("/challenges", headers=admin).json()) == 2

    r = client.post(f"/challenges/{current['id']}/submit", headers=student, json={"content": "x"})
    assert r.json()["detail"] == "Challenge is not active"

    r = client.post(f"/challenges/{future['id']}/submit", headers=student, json={"content": "x"})
    assert r.json()["detail"] == "Challenge is not open"


def test_challenge_admin_rules(client, login):
    admin = login("admin@example.com")
    now = datetime.now(timezone.utc)

    r = client.post(
        "/challenges",
        headers=admin,
        json=challenge_payload(start_at=now.isoformat(), end_at=(now - timedelta(hours=1)).isoformat()),
    )
    assert r.status_code == 400

    r = client.post("/challenges", headers=login("tutor1@example.com"), json=challenge_payload())
    assert r.status_code == 403

    challenge = client.post("/challenges", headers=admin, json=challenge_payload()).json()
    assert client.delete(f"/challenges/{challenge['id']}", headers=admin).status_code == 204
    assert client.delete(f"/challenges/{challenge['id']}", headers=admin).status_code == 404
