"""Contact form endpoint"""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request

from ..errors import ContactValidationError
from ..rate_limiter import enforce_rate_limit
from ..schemas import (
    DispatchErrorResponse,
    SendEmailResponse,
    ValidationErrorResponse,
)
from ..service import ContactService
from ..validators import validate_submission

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Contact"])


def get_contact_service(request: Request) -> ContactService:
    """Dependency injection for ContactService"""
    state = request.app.state
    return ContactService(state.settings, state.mailer)


async def read_form_payload(request: Request) -> dict[str, Any]:
    """
    JSON object body, or an empty mapping when the body is missing, not JSON,
    or not an object. An empty mapping fails every required field.
    """
    if "json" not in request.headers.get("content-type", "").lower():
        return {}
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.info(f"Unparseable JSON body on {request.url.path}")
        return {}
    return data if isinstance(data, dict) else {}


@router.post(
    "/send-email",
    response_model=SendEmailResponse,
    responses={
        400: {"model": ValidationErrorResponse},
        429: {"description": "Too many requests from this IP"},
        500: {"model": DispatchErrorResponse},
    },
    dependencies=[Depends(enforce_rate_limit)],
)
async def send_email(
    request: Request,
    service: ContactService = Depends(get_contact_service),
):
    payload = await read_form_payload(request)

    result = validate_submission(payload, service.settings.form_variant)
    if not result.ok:
        raise ContactValidationError([e.model_dump() for e in result.errors])

    await service.relay(result.submission)
    return SendEmailResponse(message="Email sent successfully")
