import logging

from fastapi import FastAPI

from app.core.config import settings
from app.core.errors import register_error_handlers
from app.core.logging_middleware import LoggingMiddleware
from app.db.init_db import init_db

from app.routers.admin import router as admin_router
from app.routers.auth import router as auth_router
from app.routers.challenges import router as challenges_router
from app.routers.chat import router as chat_router
from app.routers.contact import router as contact_router
from app.routers.content import router as content_router
from app.routers.courses import router as courses_router
from app.routers.enrollment_requests import router as enrollment_requests_router
from app.routers.enrollments import router as enrollments_router
from app.routers.gamification import router as gamification_router
from app.routers.tutor import router as tutor_router
from app.routers.users import router as users_router

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Prep Academy")

# Middleware
app.add_middleware(LoggingMiddleware)

register_error_handlers(app)


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


# Startup event
@app.on_event("startup")
def on_startup():
    # production schemas are owned by alembic (python -m app.db.migrate)
    if settings.auto_create_schema:
        init_db()


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(users_router, prefix="/admin", tags=["users"])
app.include_router(admin_router, prefix="/admin", tags=["admin"])
app.include_router(courses_router, prefix="/courses", tags=["courses"])
app.include_router(chat_router, prefix="/chat", tags=["chat"])
app.include_router(gamification_router, prefix="/gamification", tags=["gamification"])
app.include_router(challenges_router, prefix="/challenges", tags=["challenges"])

# These routers span several prefixes; routes carry their full paths
app.include_router(content_router, tags=["content"])
app.include_router(enrollment_requests_router, tags=["enrollment-requests"])
app.include_router(enrollments_router, tags=["enrollments"])
app.include_router(contact_router, tags=["contact"])
app.include_router(tutor_router)
