"""Contact service - turns a validated submission into one outgoing email"""

import logging

from .config import Settings
from .email_templates import contact_request_text
from .mailer import SMTPMailer
from .schemas import ContactSubmission

logger = logging.getLogger(__name__)


class ContactService:
    def __init__(self, settings: Settings, mailer: SMTPMailer):
        self.settings = settings
        self.mailer = mailer

    def recipient_for(self, submission: ContactSubmission) -> str:
        if self.settings.allow_overrides and submission.to:
            return submission.to
        return self.settings.email_to

    def subject_for(self, submission: ContactSubmission) -> str:
        if self.settings.allow_overrides and submission.subject:
            return submission.subject
        return self.settings.default_subject

    async def relay(self, submission: ContactSubmission) -> dict:
        """Compose and dispatch. MailDispatchError propagates to the caller."""
        to = self.recipient_for(submission)
        logger.info(f"📧 Relaying contact request from {submission.email} to {to}")
        return await self.mailer.send_async(
            self.settings.email_from,
            to,
            self.subject_for(submission),
            contact_request_text(submission),
        )
