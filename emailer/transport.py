"""SMTP session configuration and delivery.

:class:`SessionConfig` is derived from an :class:`~emailer.core.Emailer`;
a :class:`Transport` turns it into a session and delivers a rendered message.
:class:`SmtpTransport` is the :mod:`smtplib` implementation used by default.
"""

import smtplib
import ssl
from dataclasses import dataclass
from email.message import Message
from typing import Any, Optional, Protocol, Union

from .config import REDACTED
from .exceptions import TransportError
from .logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SessionConfig:
    """Everything needed to open an SMTP connection.

    ``debug`` only turns on protocol logging. ``trust_all_certificates``
    disables hostname and certificate verification and must not be used in
    production.
    """

    host: str
    port: int
    username: Optional[str] = None
    password: Optional[str] = None
    ssl_enabled: bool = False
    tls_enabled: bool = False
    debug: bool = False
    trust_all_certificates: bool = False
    timeout: float = 30.0

    @property
    def auth_enabled(self) -> bool:
        return self.username is not None and self.password is not None

    def describe(self) -> dict:
        """Returns the settings as a dict, with the password redacted."""
        return {
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "password": REDACTED if self.password else None,
            "auth_enabled": self.auth_enabled,
            "ssl_enabled": self.ssl_enabled,
            "tls_enabled": self.tls_enabled,
            "debug": self.debug,
            "trust_all_certificates": self.trust_all_certificates,
            "timeout": self.timeout,
        }

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self.describe().items() if k != "auth_enabled")
        return f"SessionConfig({fields})"


class Transport(Protocol):
    """What :meth:`Emailer.send` needs from a mail transport."""

    def open_session(self, config: SessionConfig) -> Any:
        ...

    def send(self, session: Any, message: Message) -> None:
        ...


@dataclass(frozen=True)
class SmtpSession:
    config: SessionConfig
    ssl_context: ssl.SSLContext


def create_ssl_context(trust_all_certificates: bool = False) -> ssl.SSLContext:
    """Default client context, optionally accepting any server certificate."""
    context = ssl.create_default_context()
    if trust_all_certificates:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


class SmtpTransport:
    """Delivers messages with :mod:`smtplib`, one connection per message."""

    def open_session(self, config: SessionConfig) -> SmtpSession:
        """Prepares the session; no connection is made yet."""
        if config.trust_all_certificates:
            logger.warning(
                "Certificate verification is disabled for %s:%s", config.host, config.port
            )
        return SmtpSession(config, create_ssl_context(config.trust_all_certificates))

    def _connect(self, session: SmtpSession) -> Union[smtplib.SMTP, smtplib.SMTP_SSL]:
        config = session.config
        if config.ssl_enabled:
            return smtplib.SMTP_SSL(
                config.host, config.port, timeout=config.timeout, context=session.ssl_context
            )
        return smtplib.SMTP(config.host, config.port, timeout=config.timeout)

    def send(self, session: SmtpSession, message: Message) -> None:
        """Connects, authenticates, sends ``message`` and closes the connection.

        ``Bcc`` recipients are part of the envelope but are stripped from the
        transmitted headers by :meth:`smtplib.SMTP.send_message`.

        Raises:
            TransportError: On any connection, TLS, authentication or protocol
                failure. The original exception is chained.
        """
        config = session.config
        logger.debug("Connecting to %s:%s", config.host, config.port)
        try:
            with self._connect(session) as smtp:
                if config.debug:
                    smtp.set_debuglevel(1)
                if config.tls_enabled and not config.ssl_enabled:
                    smtp.starttls(context=session.ssl_context)
                if config.auth_enabled:
                    smtp.login(config.username, config.password)
                refused = smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise TransportError(
                f"Failed to send message via {config.host}:{config.port}: {exc}"
            ) from exc

        if refused:
            logger.warning("Server refused recipient(s): %s", ", ".join(refused))
        logger.info("Message %s sent via %s:%s", message.get("Message-ID"), config.host, config.port)
