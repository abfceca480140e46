from datetime import timedelta
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Application settings, read from env vars (and `.env` when present)."""

    database_url: str = f"sqlite:///{BASE_DIR}/prep_academy.db"
    auto_create_schema: bool = True
    log_level: str = "INFO"

    secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    session_cookie_name: str = "access_token"

    # Enrollment policy
    tutor_capacity: int = 40  # max ACTIVE enrollments per tutor

    # Gamification
    level_experience: int = 1000  # experience needed per level
    streak_bonus_per_day: int = 10
    streak_bonus_cap: int = 100

    # Public contact form relay
    formspree_form_id: str | None = None
    formspree_base_url: str = "https://formspree.io/f"
    contact_timeout_seconds: float = 10.0

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()

SECRET_KEY = settings.secret_key
ALGORITHM = settings.algorithm
ACCESS_TOKEN_EXPIRE = timedelta(minutes=settings.access_token_expire_minutes)
