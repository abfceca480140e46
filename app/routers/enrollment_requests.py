from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.core.enums import RequestStatus
from app.core.errors import NotFoundError
from app.core.permissions import require_admin, require_staff, require_student
from app.models.enrollment_request import EnrollmentRequest
from app.models.user import User
from app.schemas.enrollment_request import (
    ApprovalResult,
    ApproveRequest,
    EnrollmentRequestCreate,
    EnrollmentRequestDetail,
    EnrollmentRequestRead,
    RejectRequest,
    StudentEnrollmentRequestCreate,
)
from app.services import enrollment as enrollment_service

router = APIRouter()


@router.post(
    "/enrollment-requests",
    response_model=EnrollmentRequestRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing fields or a pending request already exists"},
        404: {"description": "Course not found"},
    },
)
def submit_enrollment_request(payload: EnrollmentRequestCreate, db: Session = Depends(get_db)):
    data = payload.model_dump()
    course_id = data.pop("course_id")
    data["preferred_contact"] = payload.preferred_contact.value
    return enrollment_service.submit_request(db, course_id, **data)


@router.post(
    "/student/enroll-request",
    response_model=EnrollmentRequestRead,
    status_code=status.HTTP_201_CREATED,
)
def submit_my_enrollment_request(
    payload: StudentEnrollmentRequestCreate,
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    data = payload.model_dump()
    course_id = data.pop("course_id")
    data["preferred_contact"] = payload.preferred_contact.value
    return enrollment_service.submit_request(
        db,
        course_id,
        student_id=me.id,
        student_name=me.name or me.email,
        student_email=me.email,
        **data,
    )


@router.get("/admin/enrollment-requests", response_model=list[EnrollmentRequestDetail])
def list_enrollment_requests(
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    course_id: int | None = None,
    db: Session = Depends(get_db),
    staff: User = Depends(require_staff),
):
    q = db.query(EnrollmentRequest)
    if status_filter is not None:
        q = q.filter(EnrollmentRequest.status == status_filter.value)
    if course_id is not None:
        q = q.filter(EnrollmentRequest.course_id == course_id)
    return q.order_by(EnrollmentRequest.created_at.desc(), EnrollmentRequest.id.desc()).all()


@router.get("/admin/enrollment-requests/{request_id}", response_model=EnrollmentRequestDetail)
def get_enrollment_request(
    request_id: int,
    db: Session = Depends(get_db),
    staff: User = Depends(require_staff),
):
    req = db.get(EnrollmentRequest, request_id)
    if not req:
        raise NotFoundError("Enrollment request")
    return req


def _approve(db: Session, request_id: int, admin: User) -> dict:
    req = enrollment_service.approve_request(db, request_id, admin)
    return {
        "message": "Enrollment request approved and student enrolled successfully",
        "request": req,
        "enrollment": req.enrollment,
    }


@router.post(
    "/admin/enrollment-requests/approve",
    response_model=ApprovalResult,
    responses={
        400: {"description": "Already processed, already enrolled or tutor at capacity"},
        404: {"description": "Enrollment request not found"},
    },
)
def approve_enrollment_request_by_body(
    payload: ApproveRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return _approve(db, payload.request_id, admin)


@router.post(
    "/admin/enrollment-requests/{request_id}/approve",
    response_model=ApprovalResult,
    responses={
        400: {"description": "Already processed, already enrolled or tutor at capacity"},
        404: {"description": "Enrollment request not found"},
    },
)
def approve_enrollment_request(
    request_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return _approve(db, request_id, admin)


@router.post(
    "/admin/enrollment-requests/{request_id}/reject",
    response_model=EnrollmentRequestRead,
)
def reject_enrollment_request(
    request_id: int,
    payload: RejectRequest | None = None,
    db: Session = Depends(get_db),
    staff: User = Depends(require_staff),
):
    notes = payload.admin_notes if payload else None
    return enrollment_service.reject_request(db, request_id, staff, notes)


@router.delete(
    "/admin/enrollment-requests/{request_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_enrollment_request(
    request_id: int,
    db: Session = Depends(get_db),
    staff: User = Depends(require_staff),
):
    enrollment_service.delete_request(db, request_id)
