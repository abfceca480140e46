import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.core.enums import UserRole
from app.core.errors import ConflictError, NotFoundError
from app.core.permissions import require_admin, require_staff
from app.core.security import hash_password
from app.models.user import User
from app.schemas.user import AdminUserUpdate, PasswordSet, TutorCreate, UserRead
from app.services.enrollment import active_enrollment_count

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_user_exists(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User")
    return user


@router.get("/users", response_model=list[UserRead])
def list_users(
    role: UserRole | None = None,
    db: Session = Depends(get_db),
    staff: User = Depends(require_staff),
):
    q = db.query(User)
    if role is not None:
        q = q.filter(User.role == role.value)
    return q.order_by(User.created_at.desc(), User.id.desc()).all()


@router.post("/tutors", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_tutor(
    payload: TutorCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    email = payload.email.lower()
    if db.query(User).filter(func.lower(User.email) == email).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )

    tutor = User(
        email=email,
        name=payload.name,
        phone=payload.phone,
        bio=payload.bio,
        role=UserRole.TUTOR.value,
        hashed_password=hash_password(payload.password),
    )
    db.add(tutor)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(tutor)
    logger.info("Tutor %s created by %s", tutor.id, admin.id)
    return tutor


@router.patch("/users/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    payload: AdminUserUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = _ensure_user_exists(db, user_id)

    changes = payload.model_dump(exclude_unset=True)
    if "role" in changes:
        changes["role"] = changes["role"].value
        if (
            user.role == UserRole.TUTOR.value
            and changes["role"] != UserRole.TUTOR.value
            and active_enrollment_count(db, tutor_id=user.id) > 0
        ):
            raise ConflictError("Tutor still has active students; reassign or cancel them first")
    for field, value in changes.items():
        setattr(user, field, value)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    return user


@router.post("/users/{user_id}/password", status_code=status.HTTP_204_NO_CONTENT)
def set_password(
    user_id: int,
    payload: PasswordSet,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Give an account a new password, e.g. a student created on approval."""
    user = _ensure_user_exists(db, user_id)
    user.hashed_password = hash_password(payload.password)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Password for user %s set by %s", user_id, admin.id)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")

    user = _ensure_user_exists(db, user_id)
    if active_enrollment_count(db, tutor_id=user.id) > 0:
        raise ConflictError("Tutor still has active students; reassign or cancel them first")

    db.delete(user)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("User %s deleted by %s", user_id, admin.id)
