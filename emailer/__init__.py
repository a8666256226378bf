"""Emailer package initialization module.

This package composes email messages with plain text, HTML, and file or
bundled-resource attachments, and sends them over SMTP with optional
SSL/STARTTLS. Attachments can be referenced from the HTML body by content id
(``cid:``).

Modules:
    core (module): The ``Emailer`` message builder and its ``send`` operation.
    builder (module): Renders an ``Emailer`` into a MIME message.
    attachments (module): File and resource attachment sources.
    transport (module): SMTP session configuration and delivery.
    config (module): Settings registry and environment loading.
    utils (module): Validation helpers.

Example:
    from emailer import Emailer

    mailer = Emailer("smtp.domain.com", 587, "me@domain.com", "secret")
    mailer.set_tls(True).set_from("me@domain.com").add_to("recipient@domain.com")
    mailer.set_subject("Hello!").set_text_content("This is a test email.")
    mailer.send()
"""

from .attachments import (
    AttachmentType,
    FileAttachment,
    ResourceAttachment,
    new_content_id,
)
from .builder import build_message
from .core import Address, Emailer
from .exceptions import (
    AddressFormatError,
    AttachmentReadError,
    ConfigurationError,
    EmailerError,
    TemplateError,
    TransportError,
)
from .transport import SessionConfig, SmtpTransport, Transport

__all__ = [
    "Address",
    "AddressFormatError",
    "AttachmentReadError",
    "AttachmentType",
    "ConfigurationError",
    "Emailer",
    "EmailerError",
    "FileAttachment",
    "ResourceAttachment",
    "SessionConfig",
    "SmtpTransport",
    "TemplateError",
    "Transport",
    "TransportError",
    "build_message",
    "new_content_id",
]
