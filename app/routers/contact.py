import httpx
from fastapi import APIRouter, Depends

from app.schemas.contact import ContactMessage
from app.services.contact import get_http_client, relay_contact_message

router = APIRouter()


@router.post(
    "/contact",
    responses={
        500: {"description": "Contact form is not configured"},
        502: {"description": "The form service rejected the message"},
    },
)
def send_contact_message(
    payload: ContactMessage,
    client: httpx.Client = Depends(get_http_client),
):
    relay_contact_message(client, name=payload.name, email=payload.email, message=payload.message)
    return {"ok": True}
