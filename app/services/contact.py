import logging
from collections.abc import Iterator

import httpx
from fastapi import status

from app.core.config import settings
from app.core.errors import AppError

logger = logging.getLogger(__name__)


class RelayNotConfiguredError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class RelayFailedError(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY


def get_http_client() -> Iterator[httpx.Client]:
    with httpx.Client(timeout=settings.contact_timeout_seconds) as client:
        yield client


def relay_contact_message(client: httpx.Client, *, name: str, email: str, message: str) -> None:
    """Forward a contact form submission to the hosted form endpoint."""
    form_id = settings.formspree_form_id
    if not form_id:
        raise RelayNotConfiguredError("Contact form is not configured")

    url = f"{settings.formspree_base_url.rstrip('/')}/{form_id}"
    try:
        response = client.post(
            url,
            json={"name": name, "email": email, "message": message},
            headers={"Accept": "application/json"},
        )
    except httpx.HTTPError as exc:
        logger.warning("Contact relay to %s failed: %s", url, exc)
        raise RelayFailedError("Failed to send message") from exc

    if response.is_error:
        logger.warning("Contact relay to %s answered %s", url, response.status_code)
        raise RelayFailedError("Failed to send message")

    logger.info("Contact message from %s relayed", email)
