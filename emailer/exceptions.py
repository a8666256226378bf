"""Exception hierarchy raised by the emailer package."""


class EmailerError(Exception):
    """Base class for every error raised by emailer."""


class ConfigurationError(EmailerError, ValueError):
    """Invalid settings, missing sender or missing recipients."""


class TemplateError(ConfigurationError):
    """The HTML template file is missing or is not an HTML file."""


class AddressFormatError(EmailerError, ValueError):
    """An email address could not be parsed while rendering the message."""

    def __init__(self, address: str, reason: str = ""):
        self.address = address
        message = f"Invalid email address {address!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class AttachmentReadError(EmailerError):
    """A file attachment could not be read. Nothing was sent."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        message = f"Unable to read attachment {path!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class TransportError(EmailerError):
    """Connecting to, authenticating with or talking to the SMTP server failed."""
