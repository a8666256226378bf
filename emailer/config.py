"""Configuration registry and environment loading.

Every setting that can come from the environment is declared here with its
key, type, default, description and whether it holds a secret. Secrets are
never rendered by :func:`redact`.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from .exceptions import ConfigurationError

ENV_PREFIX = "EMAILER_"
REDACTED = "********"


class ConfigType(Enum):
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"


@dataclass(frozen=True)
class ConfigEntry:
    key: str
    type: ConfigType
    default: Optional[object]
    description: str
    secret: bool = False

    @property
    def env_var(self) -> str:
        return ENV_PREFIX + self.key.upper().replace(".", "_")


# ---------------------------------------------------------------------------
# Registry -- every known setting
# ---------------------------------------------------------------------------

REGISTRY: list[ConfigEntry] = [
    # -- smtp --
    ConfigEntry("smtp.host", ConfigType.STRING, None, "SMTP server hostname"),
    ConfigEntry("smtp.port", ConfigType.INT, 587, "SMTP server port"),
    ConfigEntry("smtp.username", ConfigType.STRING, None, "SMTP authentication username"),
    ConfigEntry(
        "smtp.password", ConfigType.STRING, None, "SMTP authentication password", secret=True
    ),
    ConfigEntry("smtp.use_ssl", ConfigType.BOOL, False, "Connect with implicit TLS (SMTPS)"),
    ConfigEntry("smtp.use_tls", ConfigType.BOOL, False, "Upgrade the connection with STARTTLS"),
    ConfigEntry("smtp.timeout", ConfigType.FLOAT, 30.0, "Socket timeout in seconds"),
    # -- diagnostics --
    ConfigEntry("debug", ConfigType.BOOL, False, "Log the SMTP protocol exchange"),
    ConfigEntry(
        "trust_all_certificates",
        ConfigType.BOOL,
        False,
        "Skip server certificate checks (never in production)",
    ),
    # -- mail --
    ConfigEntry("mail.from", ConfigType.STRING, None, "Default sender address"),
]

_REGISTRY_MAP: dict[str, ConfigEntry] = {e.key: e for e in REGISTRY}


def resolve_entry(key: str) -> Optional[ConfigEntry]:
    """Look up a registry entry by key."""
    return _REGISTRY_MAP.get(key)


def parse_value(entry: ConfigEntry, raw: str):
    """Parse a raw string value according to the entry's type."""
    try:
        if entry.type is ConfigType.INT:
            return int(raw)
        if entry.type is ConfigType.FLOAT:
            return float(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"{entry.env_var} must be {entry.type.value}, got {raw!r}"
        ) from exc
    if entry.type is ConfigType.BOOL:
        return raw.strip().lower() in ("true", "1", "yes", "on")
    return raw


def load_from_env(environ: Optional[Mapping[str, str]] = None) -> dict:
    """Read every registry entry from ``environ`` (default ``os.environ``).

    Unset or blank variables fall back to the entry default.
    """
    environ = os.environ if environ is None else environ
    settings = {}
    for entry in REGISTRY:
        raw = environ.get(entry.env_var)
        if raw is None or not raw.strip():
            settings[entry.key] = entry.default
        else:
            settings[entry.key] = parse_value(entry, raw)
    return settings


def redact(settings: Mapping[str, object]) -> dict:
    """Copy of ``settings`` with every secret value masked."""
    redacted = {}
    for key, value in settings.items():
        entry = resolve_entry(key)
        if entry is not None and entry.secret and value:
            value = REDACTED
        redacted[key] = value
    return redacted
