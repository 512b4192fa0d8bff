import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

FORM_VARIANTS = ("full", "reduced")
DEFAULT_SUBJECT = "New Contact Form Submission"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {name}={value!r}, using default {default}")
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Invalid number for {name}={value!r}, using default {default}")
        return default


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, read once from the process environment."""

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000

    # SMTP relay
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_pass: Optional[str] = None
    # Set SMTP_VERIFY_CERTS=false only for internal relays with self-signed certificates
    smtp_verify_certs: bool = True
    smtp_require_tls: bool = False
    smtp_timeout: float = 30.0

    # Message addressing
    email_from: Optional[str] = None
    email_to: Optional[str] = None
    default_subject: str = DEFAULT_SUBJECT

    # "full" accepts city/zipCode plus subject/to overrides, "reduced" does not
    form_variant: str = "full"

    # Rate limiting (10 requests per 15 minutes per IP)
    rate_limit_max: int = 10
    rate_limit_window_seconds: int = 15 * 60
    redis_url: Optional[str] = None
    trust_proxy_headers: bool = False

    # HTTP hardening
    allowed_origins: tuple[str, ...] = ("*",)
    security_headers_enabled: bool = True
    environment: str = "development"

    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def allow_overrides(self) -> bool:
        return self.form_variant == "full"

    @classmethod
    def from_env(cls) -> "Settings":
        variant = os.getenv("CONTACT_FORM_VARIANT", "full").strip().lower()
        if variant not in FORM_VARIANTS:
            logger.warning(f"Unknown CONTACT_FORM_VARIANT={variant!r}, falling back to 'full'")
            variant = "full"

        origins = tuple(
            o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()
        )

        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=_env_int("PORT", 3000),
            smtp_host=os.getenv("SMTP_HOST") or None,
            smtp_port=_env_int("SMTP_PORT", 587),
            smtp_user=os.getenv("SMTP_USER") or None,
            smtp_pass=os.getenv("SMTP_PASS") or None,
            smtp_verify_certs=_env_bool("SMTP_VERIFY_CERTS", True),
            smtp_require_tls=_env_bool("SMTP_REQUIRE_TLS", False),
            smtp_timeout=_env_float("SMTP_TIMEOUT", 30.0),
            email_from=os.getenv("EMAIL_FROM") or None,
            email_to=os.getenv("EMAIL_TO") or None,
            default_subject=os.getenv("DEFAULT_SUBJECT") or DEFAULT_SUBJECT,
            form_variant=variant,
            rate_limit_max=_env_int("RATE_LIMIT_MAX", 10),
            rate_limit_window_seconds=_env_int("RATE_LIMIT_WINDOW_SECONDS", 15 * 60),
            redis_url=os.getenv("REDIS_URL") or None,
            trust_proxy_headers=_env_bool("TRUST_PROXY_HEADERS", False),
            allowed_origins=origins or ("*",),
            security_headers_enabled=_env_bool("SECURITY_HEADERS_ENABLED", True),
            environment=os.getenv("ENVIRONMENT", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
