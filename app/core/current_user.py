from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_db
from app.core.security import decode_access_token
from app.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


def _credentials_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    # bearer header wins over the session cookie
    token = credentials.credentials if credentials else None
    if token is None:
        token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise _credentials_error()

    subject = decode_access_token(token)
    if subject is None or not subject.isdigit():
        raise _credentials_error()

    user = db.get(User, int(subject))
    if user is None:
        raise _credentials_error()
    return user


def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User | None:
    """Like get_current_user, but anonymous callers get None instead of 401."""
    try:
        return get_current_user(request, credentials, db)
    except HTTPException:
        return None
