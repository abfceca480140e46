from app.db.base import Base
from app.db.session import engine


def init_db() -> None:
    """Create any missing tables. Dev/test shortcut; deployments run migrations."""
    Base.metadata.create_all(bind=engine)
