"""Renders an :class:`~emailer.core.Emailer` into a MIME message.

The tree always has the same shape::

    multipart/related
    ├── multipart/alternative
    │   ├── text/plain   (if there is text content)
    │   └── text/html    (if there is HTML content)
    └── attachment parts, in the order they were added

Keeping the text/HTML alternatives in their own container lets mail clients
associate only the ``cid:`` resources with the HTML body.
"""

from email import encoders
from email.header import Header
from email.mime.application import MIMEApplication
from email.mime.audio import MIMEAudio
from email.mime.base import MIMEBase
from email.mime.image import MIMEImage
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate, make_msgid
from mimetypes import guess_type
from typing import TYPE_CHECKING, Iterable, Optional

from .attachments import Attachment, AttachmentContent
from .exceptions import ConfigurationError
from .logger import get_logger
from .utils import to_header_address

if TYPE_CHECKING:
    from .core import Address, Emailer

logger = get_logger(__name__)


def build_cover_part(text_content: Optional[str], html_content: Optional[str]) -> MIMEMultipart:
    """Builds the ``multipart/alternative`` part holding the message body.

    Plain text goes first and HTML last, since clients show the last part they
    can render. The container is returned even when both bodies are empty.
    """
    cover = MIMEMultipart("alternative")
    if text_content:
        cover.attach(MIMEText(text_content, "plain", "utf-8"))
    if html_content:
        cover.attach(MIMEText(html_content, "html", "utf-8"))
    return cover


def build_attachment_part(content: AttachmentContent, content_id: str = "") -> MIMEBase:
    """Wraps resolved attachment bytes in a MIME part typed by file extension.

    The bytes are sent unchanged, base64 encoded. ``message/*`` and
    ``multipart/*`` types may not be base64 encoded, so they go out as
    ``application/octet-stream``.
    """
    mime_type, _ = guess_type(content.filename)
    main_type, sub_type = mime_type.split("/", 1) if mime_type else ("application", "octet-stream")

    if main_type == "image":
        part = MIMEImage(content.data, _subtype=sub_type)
    elif main_type == "audio":
        part = MIMEAudio(content.data, _subtype=sub_type)
    elif main_type == "application":
        part = MIMEApplication(content.data, _subtype=sub_type)
    elif main_type in ("message", "multipart"):
        part = MIMEApplication(content.data)
    else:
        part = MIMEBase(main_type, sub_type)
        part.set_payload(content.data)
        encoders.encode_base64(part)

    part.add_header("Content-Disposition", "attachment", filename=content.filename)
    if content_id:
        part.add_header("Content-ID", f"<{content_id}>")
    return part


def _attachment_parts(attachments: Iterable[Attachment]) -> list:
    parts = []
    for attachment in attachments:
        content = attachment.resolve()
        if content is None:
            logger.warning(
                "Skipping %s attachment %r: it could not be resolved",
                attachment.kind.value,
                attachment.path,
            )
            continue
        parts.append(build_attachment_part(content, attachment.content_id))
    return parts


def _format_address(address: "Address") -> str:
    parsed = to_header_address(address.email, address.name)
    return formataddr((parsed.display_name, parsed.addr_spec), charset="utf-8")


def _address_list(addresses: Iterable["Address"]) -> str:
    return ", ".join(_format_address(a) for a in addresses)


def build_message(emailer: "Emailer") -> MIMEMultipart:
    """Renders the emailer's content, attachments and envelope.

    Every attachment is resolved here, so a missing file fails the render
    before any connection is made.

    Raises:
        ConfigurationError: If no sender is set.
        AttachmentReadError: If a file attachment cannot be read.
        AddressFormatError: If any address is malformed.
    """
    if emailer.sender is None:
        raise ConfigurationError("From address can not be None")

    # Addresses first so that a typo fails before attachments are read.
    sender = _format_address(emailer.sender)
    to = _address_list(emailer.to)
    cc = _address_list(emailer.cc)
    bcc = _address_list(emailer.bcc)

    message = MIMEMultipart("related")
    message.attach(build_cover_part(emailer.text_content, emailer.html_content))
    for part in _attachment_parts(emailer.attachments):
        message.attach(part)

    message["From"] = sender
    if to:
        message["To"] = to
    if cc:
        message["Cc"] = cc
    if bcc:
        message["Bcc"] = bcc
    if emailer.subject:
        message["Subject"] = Header(emailer.subject, "utf-8")
    message["Date"] = formatdate(localtime=True)
    message["Message-ID"] = make_msgid(domain=emailer.sender.email.rpartition("@")[2] or None)

    logger.debug(
        "Rendered message with %d part(s) for %d recipient(s)",
        len(message.get_payload()),
        len(emailer.to) + len(emailer.cc) + len(emailer.bcc),
    )
    return message
