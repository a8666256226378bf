import smtplib
import ssl
from email.message import Message

import pytest

from emailer import Emailer, SessionConfig, SmtpTransport, TransportError


MESSAGE = Message()


class DummySMTP:
    instances = []

    def __init__(self, host, port, timeout=None, context=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.context = context
        self.debuglevel = 0
        self.starttls_context = None
        self.login_credentials = None
        self.messages = []
        self.closed = False
        self.fail_on = None
        DummySMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False

    def set_debuglevel(self, level):
        self.debuglevel = level

    def starttls(self, context=None):
        self.starttls_context = context

    def login(self, user, password):
        if self.fail_on == "login":
            raise smtplib.SMTPAuthenticationError(535, b"Authentication failed")
        self.login_credentials = (user, password)

    def send_message(self, message):
        self.messages.append(message)
        return {}


class DummySMTP_SSL(DummySMTP):
    pass


@pytest.fixture(autouse=True)
def patch_smtplib(monkeypatch):
    DummySMTP.instances = []
    monkeypatch.setattr("emailer.transport.smtplib.SMTP", DummySMTP)
    monkeypatch.setattr("emailer.transport.smtplib.SMTP_SSL", DummySMTP_SSL)
    return DummySMTP.instances


def _send(config, message=MESSAGE):
    transport = SmtpTransport()
    transport.send(transport.open_session(config), message)
    smtp, = DummySMTP.instances
    return smtp


def test_plain_session_without_auth():
    smtp = _send(SessionConfig("relay.local", 25))

    assert type(smtp) is DummySMTP
    assert (smtp.host, smtp.port, smtp.timeout) == ("relay.local", 25, 30.0)
    assert smtp.starttls_context is None
    assert smtp.login_credentials is None
    assert smtp.debuglevel == 0
    assert smtp.messages == [MESSAGE]
    assert smtp.closed


def test_starttls_and_login():
    smtp = _send(SessionConfig("smtp.local", 587, "user", "pass", tls_enabled=True))

    assert isinstance(smtp.starttls_context, ssl.SSLContext)
    assert smtp.starttls_context.verify_mode == ssl.CERT_REQUIRED
    assert smtp.login_credentials == ("user", "pass")


def test_ssl_uses_implicit_tls_socket():
    smtp = _send(SessionConfig("smtp.local", 465, ssl_enabled=True, tls_enabled=True))

    assert type(smtp) is DummySMTP_SSL
    assert isinstance(smtp.context, ssl.SSLContext)
    assert smtp.starttls_context is None


def test_debug_only_enables_protocol_logging():
    smtp = _send(SessionConfig("smtp.local", 587, tls_enabled=True, debug=True))

    assert smtp.debuglevel == 1
    assert smtp.starttls_context.check_hostname is True
    assert smtp.starttls_context.verify_mode == ssl.CERT_REQUIRED


def test_trust_all_certificates_disables_verification(caplog):
    smtp = _send(SessionConfig("smtp.local", 587, tls_enabled=True, trust_all_certificates=True))

    assert smtp.debuglevel == 0
    assert smtp.starttls_context.check_hostname is False
    assert smtp.starttls_context.verify_mode == ssl.CERT_NONE
    assert "Certificate verification is disabled" in caplog.text


def test_authentication_failure_is_wrapped(monkeypatch):
    class FailingSMTP(DummySMTP):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            self.fail_on = "login"

    transport = SmtpTransport()
    session = transport.open_session(SessionConfig("smtp.local", 587, "user", "bad"))
    monkeypatch.setattr("emailer.transport.smtplib.SMTP", FailingSMTP)

    with pytest.raises(TransportError) as excinfo:
        transport.send(session, MESSAGE)

    assert isinstance(excinfo.value.__cause__, smtplib.SMTPAuthenticationError)
    assert DummySMTP.instances[0].closed


def test_unreachable_host_is_wrapped(monkeypatch):
    def refuse(*args, **kwargs):
        raise ConnectionRefusedError(111, "Connection refused")

    monkeypatch.setattr("emailer.transport.smtplib.SMTP", refuse)
    transport = SmtpTransport()

    with pytest.raises(TransportError, match="relay.local:25") as excinfo:
        transport.send(transport.open_session(SessionConfig("relay.local", 25)), MESSAGE)
    assert isinstance(excinfo.value.__cause__, ConnectionRefusedError)


def test_describe_redacts_password():
    config = SessionConfig("smtp.local", 587, "user", "hunter2")

    assert config.describe()["password"] == "********"
    assert config.describe()["auth_enabled"] is True
    assert "hunter2" not in repr(config)


def test_emailer_send_uses_smtp_by_default():
    mailer = Emailer("smtp.local", 587, "user", "pass", timeout=12)
    mailer.set_tls(True).set_from("a@example.com").add_to("b@example.com").add_bcc("c@example.com")
    mailer.set_text_content("Hi")

    sent = mailer.send()

    smtp, = DummySMTP.instances
    assert smtp.messages == [sent]
    assert smtp.timeout == 12.0
    assert smtp.login_credentials == ("user", "pass")
    assert sent["Bcc"] == "c@example.com"
