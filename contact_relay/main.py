import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .errors import register_exception_handlers
from .mailer import SMTPMailer
from .rate_limiter import RateLimiter
from .routes.contact import router as contact_router
from .security_headers import SecurityHeadersMiddleware

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # Reduce verbosity of third-party libraries
    logging.getLogger("redis").setLevel(logging.WARNING)


def create_app(
    settings: Optional[Settings] = None,
    mailer: Optional[SMTPMailer] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """
    Build the application. Collaborators default to ones built from the
    environment; tests pass their own.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Server running on port {settings.port}")
        logger.info(
            f"Contact form variant: {settings.form_variant} "
            f"(overrides {'enabled' if settings.allow_overrides else 'disabled'})"
        )
        if not settings.smtp_host:
            logger.warning("SMTP_HOST not set - every send will fail until it is configured")
        yield
        logger.info("Application shutting down...")

    app = FastAPI(title="Contact Relay API", version="1.0.0", lifespan=lifespan)

    app.state.settings = settings
    app.state.mailer = mailer or SMTPMailer.from_settings(settings)
    app.state.rate_limiter = rate_limiter or RateLimiter.from_settings(settings)

    register_exception_handlers(app)

    if settings.security_headers_enabled:
        app.add_middleware(SecurityHeadersMiddleware, is_production=settings.is_production)
        logger.info("Security headers enabled")
    else:
        logger.warning("Security headers DISABLED - only use in development!")

    # Wildcard origins cannot be combined with credentials
    allow_any = "*" in settings.allowed_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_any else list(settings.allowed_origins),
        allow_credentials=not allow_any,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(contact_router)

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    return app


def run() -> None:
    """Process entrypoint: serve on HOST:PORT"""
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
