"""Validation helpers shared by the emailer modules.

Field-level checks run when a value is set and raise
:class:`~emailer.exceptions.ConfigurationError`. RFC syntax of addresses is
only checked at render time by :func:`to_header_address`.
"""

from email.errors import HeaderParseError
from email.headerregistry import Address as HeaderAddress
from os.path import isfile
from typing import Optional

from .exceptions import AddressFormatError, ConfigurationError, TemplateError


def validate_not_empty(value, message: str) -> str:
    """Return ``value`` if it is a non-empty string, else raise."""
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(message)
    return value


def validate_port(port) -> int:
    """Ports must be positive integers (``bool`` is rejected)."""
    if isinstance(port, bool) or not isinstance(port, int) or port <= 0:
        raise ConfigurationError(f"Invalid port number: {port!r}")
    return port


def validate_credentials(username: Optional[str], password: Optional[str]) -> None:
    """Both username and password must be supplied, or neither."""
    if username is None and password is None:
        return
    message = "Both username and password must be supplied or neither"
    validate_not_empty(username, message)
    validate_not_empty(password, message)


def validate_timeout(timeout) -> float:
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigurationError(f"Invalid timeout: {timeout!r}")
    return float(timeout)


def validate_protocol_config(config: dict) -> None:
    """Validates an ``{"server": ..., "port": ...}`` SMTP mapping.

    Raises:
        ConfigurationError: If a key is missing or holds an invalid value.
    """
    if not isinstance(config, dict):
        raise ConfigurationError("SMTP configuration must be a dict.")
    for key in ("server", "port"):
        if key not in config:
            raise ConfigurationError(f"SMTP configuration is missing '{key}'.")
    validate_not_empty(config["server"], "Host can not be empty")
    validate_port(config["port"])


def validate_sender(sender: dict) -> None:
    """Validates an ``{"email": ..., "password": ...}`` sender mapping.

    Raises:
        ConfigurationError: If the email is missing or empty.
    """
    if not isinstance(sender, dict):
        raise ConfigurationError("Sender must be a dict.")
    validate_not_empty(sender.get("email"), "Sender email can not be empty")


def validate_template(file: str) -> None:
    """Checks that ``file`` is an existing ``.html``/``.htm`` file.

    Raises:
        TemplateError: If the path is not an HTML file or does not exist.
    """
    if not isinstance(file, str) or not file.lower().endswith((".html", ".htm")):
        raise TemplateError(f"Template must be an .html file: {file!r}")
    if not isfile(file):
        raise TemplateError(f"Template not found: {file!r}")


def to_header_address(email: str, name: Optional[str] = None) -> HeaderAddress:
    """Parse ``email`` into a :class:`email.headerregistry.Address`.

    Raises:
        AddressFormatError: If the address is not a valid ``local@domain``.
    """
    try:
        parsed = HeaderAddress(display_name=name or "", addr_spec=email)
    except (HeaderParseError, ValueError, IndexError) as exc:
        raise AddressFormatError(email, str(exc)) from exc
    if not parsed.username or not parsed.domain:
        raise AddressFormatError(email, "expected local-part@domain")
    return parsed
