"""
Error taxonomy for the contact relay and the FastAPI handlers that map each
error to its HTTP response. None of these are fatal to the process.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."
DISPATCH_FAILED_MESSAGE = "Failed to send email"


class ContactValidationError(Exception):
    """One or more submitted fields failed validation"""

    def __init__(self, errors: list[dict[str, Any]]):
        super().__init__(f"{len(errors)} field(s) failed validation")
        self.errors = errors

    @property
    def fields(self) -> list[str]:
        return [e.get("path") for e in self.errors]


class MailDispatchError(Exception):
    """The SMTP relay could not accept the message"""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class RateLimitExceeded(Exception):
    """Caller exceeded its request quota for the current window"""

    def __init__(self, key: str, count: int, limit: int, retry_after: int):
        super().__init__(f"Rate limit exceeded for {key}: {count}/{limit}")
        self.key = key
        self.count = count
        self.limit = limit
        self.retry_after = retry_after


class RateLimitUnavailable(Exception):
    """The rate limit counter store could not be reached"""


async def contact_validation_handler(request: Request, exc: ContactValidationError):
    logger.info(f"Validation failed for {request.url.path}: {', '.join(exc.fields)}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"errors": exc.errors})


async def mail_dispatch_handler(request: Request, exc: MailDispatchError):
    # Detail stays server-side
    logger.error(f"Email send error: {exc.detail}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": DISPATCH_FAILED_MESSAGE},
    )


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"🚫 Rate limit EXCEEDED for {exc.key} - {exc.count}/{exc.limit} requests used")
    return PlainTextResponse(
        RATE_LIMIT_MESSAGE,
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        headers={"Retry-After": str(exc.retry_after)},
    )


async def rate_limit_unavailable_handler(request: Request, exc: RateLimitUnavailable):
    logger.error(f"❌ Rate limiting error: {exc}")
    logger.warning("🔒 Denying request due to rate limiting error (fail-closed mode)")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": "Rate limiting service temporarily unavailable"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ContactValidationError, contact_validation_handler)
    app.add_exception_handler(MailDispatchError, mail_dispatch_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(RateLimitUnavailable, rate_limit_unavailable_handler)
