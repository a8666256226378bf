import pytest

from emailer import ConfigurationError, Emailer
from emailer.config import REGISTRY, load_from_env, redact, resolve_entry


def test_env_var_names():
    assert [e.env_var for e in REGISTRY] == [
        "EMAILER_SMTP_HOST",
        "EMAILER_SMTP_PORT",
        "EMAILER_SMTP_USERNAME",
        "EMAILER_SMTP_PASSWORD",
        "EMAILER_SMTP_USE_SSL",
        "EMAILER_SMTP_USE_TLS",
        "EMAILER_SMTP_TIMEOUT",
        "EMAILER_DEBUG",
        "EMAILER_TRUST_ALL_CERTIFICATES",
        "EMAILER_MAIL_FROM",
    ]


def test_defaults_when_environment_is_empty():
    settings = load_from_env({})
    assert settings["smtp.host"] is None
    assert settings["smtp.port"] == 587
    assert settings["smtp.use_tls"] is False
    assert settings["smtp.timeout"] == 30.0


def test_values_are_parsed_by_type():
    settings = load_from_env(
        {
            "EMAILER_SMTP_HOST": "smtp.local",
            "EMAILER_SMTP_PORT": "465",
            "EMAILER_SMTP_USE_SSL": "yes",
            "EMAILER_SMTP_USE_TLS": "off",
            "EMAILER_SMTP_TIMEOUT": "2.5",
            "EMAILER_DEBUG": "1",
            "EMAILER_SMTP_USERNAME": "  ",
        }
    )
    assert settings["smtp.host"] == "smtp.local"
    assert settings["smtp.port"] == 465
    assert settings["smtp.use_ssl"] is True
    assert settings["smtp.use_tls"] is False
    assert settings["smtp.timeout"] == 2.5
    assert settings["debug"] is True
    assert settings["smtp.username"] is None


def test_bad_integer_raises_configuration_error():
    with pytest.raises(ConfigurationError, match="EMAILER_SMTP_PORT"):
        load_from_env({"EMAILER_SMTP_PORT": "smtp"})


def test_redact_masks_secrets_only():
    settings = {"smtp.username": "user", "smtp.password": "hunter2", "other": "x"}
    assert redact(settings) == {"smtp.username": "user", "smtp.password": "********", "other": "x"}
    assert redact({"smtp.password": None}) == {"smtp.password": None}
    assert resolve_entry("smtp.password").secret is True


def test_emailer_from_env():
    mailer = Emailer.from_env(
        {
            "EMAILER_SMTP_HOST": "smtp.local",
            "EMAILER_SMTP_PORT": "2525",
            "EMAILER_SMTP_USERNAME": "user",
            "EMAILER_SMTP_PASSWORD": "pass",
            "EMAILER_SMTP_USE_TLS": "true",
            "EMAILER_TRUST_ALL_CERTIFICATES": "true",
            "EMAILER_MAIL_FROM": "noreply@example.com",
        }
    )
    config = mailer.session_config()

    assert (config.host, config.port) == ("smtp.local", 2525)
    assert config.auth_enabled and config.tls_enabled
    assert config.trust_all_certificates and not config.debug
    assert mailer.sender.email == "noreply@example.com"


def test_emailer_from_env_requires_host():
    with pytest.raises(ConfigurationError, match="EMAILER_SMTP_HOST"):
        Emailer.from_env({})


def test_emailer_from_env_rejects_half_credentials():
    with pytest.raises(ConfigurationError):
        Emailer.from_env({"EMAILER_SMTP_HOST": "smtp.local", "EMAILER_SMTP_USERNAME": "user"})
