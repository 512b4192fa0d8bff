"""
SMTP mail dispatcher
Sends one plain-text message per call through the configured relay
"""

import asyncio
import logging
import smtplib
import ssl
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid, parseaddr
from typing import Optional

from .config import Settings
from .errors import MailDispatchError

logger = logging.getLogger(__name__)


class SMTPMailer:
    """
    Thin wrapper over smtplib.

    Port 465 uses implicit TLS. Any other port connects in plain text and
    upgrades with STARTTLS when the relay offers it (required when
    require_tls is set). A new connection is opened for every message and
    failures are never retried.
    """

    def __init__(
        self,
        host: Optional[str],
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        verify_certs: bool = True,
        require_tls: bool = False,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.verify_certs = verify_certs
        self.require_tls = require_tls
        self.timeout = timeout

        if not verify_certs:
            logger.warning(
                f"⚠️ TLS certificate verification is DISABLED for SMTP relay {host}:{port}"
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> "SMTPMailer":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_pass,
            verify_certs=settings.smtp_verify_certs,
            require_tls=settings.smtp_require_tls,
            timeout=settings.smtp_timeout,
        )

    def tls_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not self.verify_certs:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def _connect(self) -> smtplib.SMTP:
        if self.port == 465:
            return smtplib.SMTP_SSL(
                self.host, self.port, context=self.tls_context(), timeout=self.timeout
            )

        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        try:
            server.ehlo()
            if server.has_extn("starttls"):
                server.starttls(context=self.tls_context())
            elif self.require_tls:
                raise MailDispatchError(f"{self.host}:{self.port} does not support STARTTLS")
        except BaseException:
            server.close()
            raise
        return server

    def build_message(self, from_address: str, to: str, subject: str, body: str) -> MIMEText:
        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = from_address
        msg["To"] = to
        msg["Date"] = formatdate(localtime=True)
        msg["Message-ID"] = make_msgid()
        return msg

    def send(self, from_address: str, to: str, subject: str, body: str) -> dict:
        """
        Send a plain-text email.

        Returns:
            Dict with the Message-ID and any recipients the relay refused

        Raises:
            MailDispatchError: relay unreachable, authentication failed,
                message rejected, or timed out
        """
        if not self.host:
            raise MailDispatchError("SMTP relay is not configured (SMTP_HOST missing)")
        if not from_address:
            raise MailDispatchError("Sender address is not configured (EMAIL_FROM missing)")
        if not to:
            raise MailDispatchError("Recipient address is not configured (EMAIL_TO missing)")

        msg = self.build_message(from_address, to, subject, body)
        envelope_from = parseaddr(from_address)[1] or from_address

        try:
            with self._connect() as server:
                if self.username:
                    server.login(self.username, self.password or "")
                refused = server.sendmail(envelope_from, [to], msg.as_string())
        except MailDispatchError:
            raise
        except (UnicodeError, smtplib.SMTPNotSupportedError) as e:
            raise MailDispatchError(f"Relay cannot encode message for {to}: {e}") from e
        except smtplib.SMTPAuthenticationError as e:
            raise MailDispatchError(f"SMTP authentication failed: {e}") from e
        except smtplib.SMTPRecipientsRefused as e:
            raise MailDispatchError(f"Relay refused recipient {to}: {e.recipients}") from e
        except smtplib.SMTPException as e:
            raise MailDispatchError(f"SMTP error from {self.host}:{self.port}: {e}") from e
        except ssl.SSLError as e:
            raise MailDispatchError(f"SSL/TLS error with {self.host}:{self.port}: {e}") from e
        except TimeoutError as e:
            raise MailDispatchError(f"Timed out talking to {self.host}:{self.port}") from e
        except OSError as e:
            raise MailDispatchError(f"Could not connect to {self.host}:{self.port}: {e}") from e

        logger.info(f"✅ Email sent successfully via {self.host} to {to}")
        return {"message_id": msg["Message-ID"], "refused": refused}

    async def send_async(self, from_address: str, to: str, subject: str, body: str) -> dict:
        """Run send() in a worker thread so the event loop stays free"""
        return await asyncio.to_thread(self.send, from_address, to, subject, body)
