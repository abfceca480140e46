import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.current_user import get_current_user
from app.core.deps import get_db
from app.core.enums import ADMIN_ROLES, PointCategory
from app.core.permissions import require_admin
from app.models.challenge import Challenge, ChallengeSubmission
from app.models.user import User
from app.schemas.challenge import (
    ChallengeCreate,
    ChallengeRead,
    ChallengeSubmissionRead,
    ChallengeSubmit,
)
from app.services.gamification import as_utc, award_points

logger = logging.getLogger(__name__)

router = APIRouter()

def _ensure_challenge_exists(db: Session, challenge_id: int) -> Challenge:
    challenge = db.get(Challenge, challenge_id)
    if not challenge:
        raise HTTPException(status_code=404, detail="Challenge not found")
    return challenge


def _participants(db: Session, challenge_id: int) -> int:
    return (
        db.query(func.count(ChallengeSubmission.id))
        .filter(ChallengeSubmission.challenge_id == challenge_id)
        .scalar()
    ) or 0


def _read(db: Session, challenge: Challenge) -> dict:
    item = ChallengeRead.model_validate(challenge).model_dump()
    item["participants"] = _participants(db, challenge.id)
    return item


@router.get("", response_model=list[ChallengeRead])
def list_challenges(
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    q = db.query(Challenge)
    if me.role not in {r.value for r in ADMIN_ROLES}:
        now = datetime.now(timezone.utc)
        q = q.filter(
            Challenge.is_active.is_(True),
            Challenge.start_at <= now,
            Challenge.end_at >= now,
        )
    return [_read(db, c) for c in q.order_by(Challenge.end_at.asc(), Challenge.id.asc()).all()]


@router.post("", response_model=ChallengeRead, status_code=status.HTTP_201_CREATED)
def create_challenge(
    payload: ChallengeCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    challenge = Challenge(
        title=payload.title,
        description=payload.description,
        type=payload.type.value,
        start_at=as_utc(payload.start_at),
        end_at=as_utc(payload.end_at),
        reward_points=payload.reward_points,
        max_participants=payload.max_participants,
        created_by_id=admin.id,
    )
    db.add(challenge)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(challenge)
    return _read(db, challenge)


@router.patch("/{challenge_id}/toggle", response_model=ChallengeRead)
def toggle_challenge(
    challenge_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    challenge = _ensure_challenge_exists(db, challenge_id)
    challenge.is_active = not challenge.is_active
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(challenge)
    return _read(db, challenge)


@router.delete("/{challenge_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_challenge(
    challenge_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    challenge = _ensure_challenge_exists(db, challenge_id)
    db.delete(challenge)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


@router.post(
    "/{challenge_id}/submit",
    response_model=ChallengeSubmissionRead,
    status_code=status.HTTP_201_CREATED,
)
def submit_challenge(
    challenge_id: int,
    payload: ChallengeSubmit,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    challenge = _ensure_challenge_exists(db, challenge_id)

    now = datetime.now(timezone.utc)
    if not challenge.is_active:
        raise HTTPException(status_code=400, detail="Challenge is not active")
    if not (as_utc(challenge.start_at) <= now <= as_utc(challenge.end_at)):
        raise HTTPException(status_code=400, detail="Challenge is not open")

    already = (
        db.query(ChallengeSubmission)
        .filter(
            ChallengeSubmission.challenge_id == challenge_id,
            ChallengeSubmission.user_id == me.id,
        )
        .first()
    )
    if already:
        raise HTTPException(status_code=400, detail="You have already submitted this challenge")

    if challenge.max_participants is not None and _participants(db, challenge_id) >= challenge.max_participants:
        raise HTTPException(status_code=400, detail="Challenge is full")

    submission = ChallengeSubmission(challenge_id=challenge_id, user_id=me.id, content=payload.content)
    db.add(submission)
    try:
        db.flush()
        if challenge.reward_points:
            award_points(
                db,
                me.id,
                challenge.reward_points,
                PointCategory.CHALLENGE,
                f"Challenge: {challenge.title}",
            )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(submission)
    logger.info("User %s submitted challenge %s", me.id, challenge_id)

    submission.points_awarded = challenge.reward_points
    return submission
