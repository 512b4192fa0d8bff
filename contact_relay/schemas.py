from typing import Any, List, Optional

from pydantic import BaseModel


class ContactSubmission(BaseModel):
    """A validated contact form submission; values are already trimmed."""

    first_name: str
    last_name: str
    email: str
    phone: str
    address: str
    message: str
    city: Optional[str] = None
    zip_code: Optional[str] = None
    subject: Optional[str] = None
    to: Optional[str] = None


class FieldError(BaseModel):
    type: str = "field"
    value: Any = None
    msg: str
    path: str
    location: str = "body"


class SendEmailResponse(BaseModel):
    message: str


class ValidationErrorResponse(BaseModel):
    errors: List[FieldError]


class DispatchErrorResponse(BaseModel):
    error: str
