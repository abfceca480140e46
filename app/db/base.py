from app.db.base_class import Base

# import models so SQLAlchemy registers them on Base.metadata
from app.models import (  # noqa: F401
    challenge,
    chat,
    content,
    course,
    enrollment,
    enrollment_request,
    gamification,
    payment,
    user,
)

__all__ = ["Base"]
