"""Status and role enums shared by models, schemas and services."""

import enum


class UserRole(str, enum.Enum):
    STUDENT = "STUDENT"
    TUTOR = "TUTOR"
    ADMIN = "ADMIN"
    OWNER = "OWNER"
    MANAGER = "MANAGER"


class CourseStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    DRAFT = "DRAFT"


class RequestStatus(str, enum.Enum):
    """Enrollment request lifecycle. APPROVED and REJECTED are terminal."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ContactChannel(str, enum.Enum):
    PHONE = "PHONE"
    WHATSAPP = "WHATSAPP"
    TELEGRAM = "TELEGRAM"
    EMAIL = "EMAIL"


class EnrollmentStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class PaymentMethod(str, enum.Enum):
    MANUAL = "MANUAL"
    KASPI = "KASPI"
    CARD = "CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    CONTACT_MANAGER = "CONTACT_MANAGER"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    REFUNDED = "REFUNDED"


class MaterialType(str, enum.Enum):
    TEXT = "TEXT"
    PDF = "PDF"
    VIDEO = "VIDEO"
    LINK = "LINK"


class ChatType(str, enum.Enum):
    DIRECT = "DIRECT"
    GROUP = "GROUP"


class MessageType(str, enum.Enum):
    TEXT = "TEXT"
    FILE = "FILE"
    SYSTEM = "SYSTEM"


class PointCategory(str, enum.Enum):
    TEST_PERFORMANCE = "TEST_PERFORMANCE"
    STREAK_BONUS = "STREAK_BONUS"
    ACHIEVEMENT = "ACHIEVEMENT"
    CHALLENGE = "CHALLENGE"
    MANUAL = "MANUAL"


class ChallengeType(str, enum.Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    SPECIAL = "SPECIAL"


STAFF_ROLES = (UserRole.ADMIN, UserRole.OWNER, UserRole.MANAGER)
ADMIN_ROLES = (UserRole.ADMIN, UserRole.OWNER)
TEACHING_ROLES = (UserRole.TUTOR, UserRole.ADMIN, UserRole.OWNER)
