from fastapi import Depends, HTTPException, status

from app.core.current_user import get_current_user
from app.core.enums import ADMIN_ROLES, STAFF_ROLES, TEACHING_ROLES, UserRole
from app.models.user import User


def require_roles(*roles: UserRole):
    allowed = {r.value for r in roles}

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role",
            )
        return current_user

    return dependency


require_admin = require_roles(*ADMIN_ROLES)
require_staff = require_roles(*STAFF_ROLES)
require_teaching = require_roles(*TEACHING_ROLES)
require_student = require_roles(UserRole.STUDENT)
