"""
Declarative validation for contact form submissions.

Each variant is a tuple of Rule(field, check, message). Every rule runs on
every request so the caller gets all violations in one response.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from email_validator import EmailNotValidError, validate_email

from .schemas import ContactSubmission, FieldError


@dataclass(frozen=True)
class Rule:
    field: str
    check: Callable[[Optional[str]], bool]
    message: str


@dataclass
class ValidationResult:
    submission: Optional[ContactSubmission] = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def normalize(value: Any) -> Optional[str]:
    """Trim strings and stringify numbers. Anything else counts as missing."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    return None


def is_present(value: Optional[str]) -> bool:
    return bool(value)


def is_email(value: Optional[str]) -> bool:
    if not value:
        return False
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def is_relay_address(value: Optional[str]) -> bool:
    """An address the SMTP envelope can carry as-is (no SMTPUTF8)"""
    if not value:
        return False
    try:
        validate_email(value, check_deliverability=False, allow_smtputf8=False)
    except EmailNotValidError:
        return False
    return True


def is_single_line(value: Optional[str]) -> bool:
    return value is not None and "\r" not in value and "\n" not in value


def optional(check: Callable[[Optional[str]], bool]) -> Callable[[Optional[str]], bool]:
    """Apply check only when a non-blank value was supplied"""

    def _check(value: Optional[str]) -> bool:
        return not value or check(value)

    return _check


FULL_RULES = (
    Rule("firstName", is_present, "First name is required"),
    Rule("lastName", is_present, "Last name is required"),
    Rule("email", is_email, "Valid email is required"),
    Rule("phone", is_present, "Phone number is required"),
    Rule("address", is_present, "Address is required"),
    Rule("city", is_present, "City is required"),
    Rule("zipCode", is_present, "Zip code is required"),
    Rule("message", is_present, "Message is required"),
)

REDUCED_RULES = tuple(r for r in FULL_RULES if r.field not in ("city", "zipCode"))

OVERRIDE_RULES = (
    Rule("subject", optional(is_single_line), "Subject must be a single line"),
    Rule("to", optional(is_relay_address), "Valid recipient email is required"),
)

VARIANT_RULES = {
    "full": FULL_RULES + OVERRIDE_RULES,
    "reduced": REDUCED_RULES,
}


def rules_for(variant: str) -> tuple[Rule, ...]:
    try:
        return VARIANT_RULES[variant]
    except KeyError:
        raise ValueError(f"Unknown form variant: {variant}") from None


def validate_submission(payload: Mapping[str, Any], variant: str = "full") -> ValidationResult:
    """
    Validate a raw form payload against the rule set of a variant.

    Args:
        payload: Field name to raw (untrusted) value
        variant: "full" or "reduced"

    Returns:
        ValidationResult holding either the trimmed submission or every
        field error found
    """
    rules = rules_for(variant)
    values = {name: normalize(raw) for name, raw in payload.items()}

    errors = []
    for rule in rules:
        value = values.get(rule.field)
        if not rule.check(value):
            errors.append(
                FieldError(
                    value=value if value is not None else payload.get(rule.field),
                    msg=rule.message,
                    path=rule.field,
                )
            )

    if errors:
        return ValidationResult(errors=errors)

    fields = {
        "first_name": values["firstName"],
        "last_name": values["lastName"],
        "email": values["email"],
        "phone": values["phone"],
        "address": values["address"],
        "message": values["message"],
    }
    if variant == "full":
        fields.update(
            city=values["city"],
            zip_code=values["zipCode"],
            subject=values.get("subject") or None,
            to=values.get("to") or None,
        )

    return ValidationResult(submission=ContactSubmission(**fields))
