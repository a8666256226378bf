from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from typing import Mapping, Optional

from jinja2 import Template  # type: ignore

from .attachments import (
    Attachment,
    AttachmentType,
    IdGenerator,
    make_attachment,
    new_content_id,
)
from .builder import build_message
from .config import REDACTED, load_from_env
from .exceptions import ConfigurationError
from .logger import get_logger
from .transport import SessionConfig, SmtpTransport, Transport
from .utils import (
    validate_credentials,
    validate_not_empty,
    validate_port,
    validate_protocol_config,
    validate_sender,
    validate_template,
    validate_timeout,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class Address:
    """An email address with an optional display name."""

    email: str
    name: Optional[str] = None

    def __post_init__(self):
        validate_not_empty(self.email, "Email address can not be empty")

    def __str__(self) -> str:
        if self.name:
            return f"{self.name} <{self.email}>"
        return self.email


class Emailer:
    """Composes a single email message and sends it over SMTP.

    The message may carry a plain-text body, an HTML body and any number of
    attachments. Attachments can be referenced from the HTML body by their
    content id (``<img src="cid:...">``).

    Example:
        mailer = Emailer("smtp.domain.com", 587, "me@domain.com", "secret")
        mailer.set_tls(True)
        mailer.set_from("info@domain.com", "Me Myself")
        mailer.add_to("anyone@test.com", "Any Body")
        mailer.set_subject("Subject")

        logo = mailer.new_content_id()
        mailer.add_resource("myapp/static/logo.gif", logo)
        mailer.set_html_content(f'<h1>HTML</h1><img src="cid:{logo}"/>')
        mailer.set_text_content("Text version of HTML.")
        mailer.add_attachment("/home/me/file.txt")
        mailer.send()

    An instance describes one message; do not mutate it while ``send`` runs.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str] = None,
        password: Optional[str] = None,
        *,
        id_generator: Optional[IdGenerator] = None,
        resource_package: Optional[str] = None,
        timeout: float = 30.0,
    ):
        """Initializes the Emailer with the SMTP endpoint and credentials.

        Args:
            host (str): SMTP server hostname or IP.
            port (int): SMTP server port.
            username (str, optional): SMTP login. Requires ``password``.
            password (str, optional): SMTP password. Requires ``username``.
            id_generator (callable, optional): Returns a new unique content id
                on each call. Defaults to :func:`new_content_id`.
            resource_package (str, optional): Package that resource
                attachments are resolved against when they name none.
            timeout (float): Socket timeout in seconds.

        Raises:
            ConfigurationError: If the host is empty, the port is not
                positive, or only one of username/password is given.
        """
        validate_not_empty(host, "Host can not be empty")
        validate_port(port)
        validate_credentials(username, password)

        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = validate_timeout(timeout)

        self.id_generator = id_generator or new_content_id
        self.resource_package = resource_package

        self.sender: Optional[Address] = None
        self.to: list[Address] = []
        self.cc: list[Address] = []
        self.bcc: list[Address] = []
        self.subject: Optional[str] = None
        self.text_content: Optional[str] = None
        self.html_content: Optional[str] = None
        self.attachments: list[Attachment] = []

        self.use_ssl = False
        self.use_tls = False
        self.debug = False
        self.trust_all_certificates = False

    @classmethod
    def from_config(cls, smtp: dict, sender: Optional[dict] = None, **kwargs) -> "Emailer":
        """Builds an Emailer from dict-style settings.

        Args:
            smtp (dict): ``server`` and ``port``, plus optional ``ssl``,
                ``tls`` and ``timeout``.
            sender (dict, optional): ``email`` and ``password``, plus an
                optional display ``name``. The email is used both as SMTP
                login and as the ``From`` address.

        Example:
            smtp = {"server": "smtp.domain.com", "port": 587, "tls": True}
            sender = {"email": "me@domain.com", "password": "secret"}
            mailer = Emailer.from_config(smtp, sender)
        """
        validate_protocol_config(smtp)
        username = password = None
        if sender is not None:
            validate_sender(sender)
            username, password = sender["email"], sender.get("password")
            if password is None:
                username = None

        if "timeout" in smtp:
            kwargs.setdefault("timeout", smtp["timeout"])
        emailer = cls(smtp["server"], smtp["port"], username, password, **kwargs)
        emailer.set_ssl(bool(smtp.get("ssl", False)))
        emailer.set_tls(bool(smtp.get("tls", False)))
        if sender is not None:
            emailer.set_from(sender["email"], sender.get("name"))
        return emailer

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **kwargs) -> "Emailer":
        """Builds an Emailer from ``EMAILER_*`` environment variables.

        ``EMAILER_SMTP_HOST`` is required; see :data:`emailer.config.REGISTRY`
        for the full list.

        Raises:
            ConfigurationError: If a variable is missing or malformed.
        """
        settings = load_from_env(environ)
        if not settings["smtp.host"]:
            raise ConfigurationError("EMAILER_SMTP_HOST is not set")

        kwargs.setdefault("timeout", settings["smtp.timeout"])
        emailer = cls(
            settings["smtp.host"],
            settings["smtp.port"],
            settings["smtp.username"],
            settings["smtp.password"],
            **kwargs,
        )
        emailer.set_ssl(settings["smtp.use_ssl"])
        emailer.set_tls(settings["smtp.use_tls"])
        emailer.set_debug(settings["debug"])
        emailer.set_trust_all_certificates(settings["trust_all_certificates"])
        if settings["mail.from"]:
            emailer.set_from(settings["mail.from"])
        return emailer

    def set_from(self, email: str, name: Optional[str] = None) -> "Emailer":
        self.sender = Address(email, name)
        return self

    def add_to(self, email: str, name: Optional[str] = None) -> "Emailer":
        self.to.append(Address(email, name))
        return self

    def add_cc(self, email: str, name: Optional[str] = None) -> "Emailer":
        self.cc.append(Address(email, name))
        return self

    def add_bcc(self, email: str, name: Optional[str] = None) -> "Emailer":
        self.bcc.append(Address(email, name))
        return self

    def set_subject(self, subject: Optional[str]) -> "Emailer":
        self.subject = subject
        return self

    def set_text_content(self, text: Optional[str]) -> "Emailer":
        self.text_content = text
        return self

    def set_html_content(self, html: Optional[str]) -> "Emailer":
        self.html_content = html
        return self

    def set_html_template(self, file: str, **variables) -> "Emailer":
        """Renders a Jinja2 HTML template and uses it as the HTML content.

        Args:
            file (str): Path to the ``.html`` template file.
            **variables: Values for the template placeholders.

        Raises:
            TemplateError: If the file is not an existing HTML file.

        Example:
            set_html_template("templates/welcome.html", name="John", logo=cid)
        """
        validate_template(file)

        with open(file, "r", encoding="utf-8") as f:
            html = Template(f.read()).render(**variables)
        return self.set_html_content(html)

    def new_content_id(self) -> str:
        """Returns a fresh content id from this emailer's id generator.

        Handy when the ``cid:`` reference has to be written into the HTML
        before the attachment is added.
        """
        return self.id_generator()

    def add_attachment(
        self,
        path: str,
        content_id: Optional[str] = None,
        kind: AttachmentType = AttachmentType.FILE,
        package: Optional[str] = None,
    ) -> "Emailer":
        """Adds an attachment, optionally with a specific content id.

        The id links the attachment to the HTML content, for example
        ``<img src="cid:the-attachment-id"/>``. Without one, a new id is taken
        from the id generator; pass ``""`` to send no ``Content-ID`` header.

        Args:
            path (str): File system path, or resource path for
                ``AttachmentType.RESOURCE``.
            content_id (str, optional): Content id for the attachment.
            kind (AttachmentType): Where the attachment is loaded from.
            package (str, optional): Anchor package for resources.

        Raises:
            ConfigurationError: If the path is empty or the kind is unknown.
        """
        validate_not_empty(path, "Attachment path can not be empty")
        if not isinstance(kind, AttachmentType):
            raise ConfigurationError(f"Unknown attachment type: {kind!r}")
        if content_id is None:
            content_id = self.id_generator()
        if kind is AttachmentType.RESOURCE and package is None:
            package = self.resource_package

        self.attachments.append(make_attachment(kind, path, content_id, package))
        return self

    def add_resource(
        self, path: str, content_id: Optional[str] = None, package: Optional[str] = None
    ) -> "Emailer":
        """Shorthand for ``add_attachment(path, content_id, AttachmentType.RESOURCE)``."""
        return self.add_attachment(path, content_id, AttachmentType.RESOURCE, package)

    def set_ssl(self, use_ssl: bool) -> "Emailer":
        """Connect with implicit TLS (SMTPS, usually port 465)."""
        self.use_ssl = use_ssl
        return self

    def set_tls(self, use_tls: bool) -> "Emailer":
        """Upgrade the connection with STARTTLS (usually port 587)."""
        self.use_tls = use_tls
        return self

    def set_debug(self, debug: bool) -> "Emailer":
        """Log the SMTP protocol exchange. Does not affect certificate checks."""
        self.debug = debug
        return self

    def set_trust_all_certificates(self, trust: bool) -> "Emailer":
        """Skip server hostname and certificate verification.

        Should not be used in production for security reasons.
        """
        self.trust_all_certificates = trust
        return self

    def set_timeout(self, timeout: float) -> "Emailer":
        self.timeout = validate_timeout(timeout)
        return self

    def session_config(self) -> SessionConfig:
        """Returns the connection settings derived from this emailer."""
        return SessionConfig(
            host=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            ssl_enabled=self.use_ssl,
            tls_enabled=self.use_tls,
            debug=self.debug,
            trust_all_certificates=self.trust_all_certificates,
            timeout=self.timeout,
        )

    def _check_ready(self) -> None:
        if self.sender is None:
            raise ConfigurationError("From address can not be None")
        if not self.to and not self.bcc:
            raise ConfigurationError("No TO or BCC addresses specified")

    def build(self) -> MIMEMultipart:
        """Renders the message without sending it.

        Raises:
            ConfigurationError: If the sender or recipients are missing.
            AddressFormatError: If an address is malformed.
            AttachmentReadError: If a file attachment cannot be read.
        """
        self._check_ready()
        return build_message(self)

    def send(self, transport: Optional[Transport] = None) -> MIMEMultipart:
        """Renders the message and delivers it.

        The message is fully rendered (every attachment read) before the
        transport is touched, so a failure here never sends a partial message.

        Args:
            transport (Transport, optional): Delivery backend. Defaults to
                :class:`SmtpTransport`.

        Returns:
            MIMEMultipart: The message that was sent.

        Raises:
            ConfigurationError: If the sender or recipients are missing.
            AddressFormatError: If an address is malformed.
            AttachmentReadError: If a file attachment cannot be read.
            TransportError: If the SMTP exchange fails.
        """
        message = self.build()
        logger.debug("Sending %r", self)
        transport = transport or SmtpTransport()
        session = transport.open_session(self.session_config())
        transport.send(session, message)
        return message

    def __str__(self) -> str:
        return (
            f"Emailer [host={self.host}\nport={self.port}\nusername={self.username}"
            f"\npassword={REDACTED if self.password else None}\nfrom={self.sender}"
            f"\nto={[str(a) for a in self.to]}\ncc={[str(a) for a in self.cc]}"
            f"\nbcc={[str(a) for a in self.bcc]}\nattachments={self.attachments}"
            f"\nsubject={self.subject}\ntext_content={self.text_content}"
            f"\nhtml_content={self.html_content}\nuse_ssl={self.use_ssl}\nuse_tls={self.use_tls}"
            f"\ndebug={self.debug}\ntrust_all_certificates={self.trust_all_certificates}"
            f"\ntimeout={self.timeout}]"
        )

    def __repr__(self) -> str:
        return f"<Emailer host={self.host!r} port={self.port} from={str(self.sender)!r} to={len(self.to)}>"
