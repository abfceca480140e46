from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import ACCESS_TOKEN_EXPIRE, settings
from app.core.current_user import get_current_user
from app.core.deps import get_db
from app.core.enums import UserRole
from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import User
from app.schemas.auth import LoginRequest
from app.schemas.token import Token
from app.schemas.user import ProfileUpdate, UserCreate, UserRead
from app.services.gamification import record_daily_activity

router = APIRouter()


@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Email already registered"},
    },
)
def register(payload: UserCreate, db: Session = Depends(get_db)):
    email = payload.email.lower()
    existing_user = db.query(User).filter(func.lower(User.email) == email).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )

    user = User(
        email=email,
        name=payload.name,
        phone=payload.phone,
        role=UserRole.STUDENT.value,
        hashed_password=hash_password(payload.password),
    )
    db.add(user)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    return user


@router.post(
    "/login",
    response_model=Token,
    responses={
        401: {"description": "Invalid email or password"},
    },
)
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(func.lower(User.email) == payload.email.lower()).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    record_daily_activity(db, user.id)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    access_token = create_access_token(
        data={"sub": str(user.id)},
        expires_delta=ACCESS_TOKEN_EXPIRE,
    )
    response.set_cookie(
        key=settings.session_cookie_name,
        value=access_token,
        max_age=int(ACCESS_TOKEN_EXPIRE.total_seconds()),
        httponly=True,
        samesite="lax",
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
    }


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout():
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(settings.session_cookie_name)
    return response


@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/me", response_model=UserRead)
def update_me(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(current_user)
    return current_user
