import itertools
import uuid

import pytest

from emailer import Emailer


class RecordingTransport:
    """Transport double that records calls instead of talking SMTP."""

    def __init__(self):
        self.sessions = []
        self.sent = []

    @property
    def calls(self):
        return len(self.sessions) + len(self.sent)

    def open_session(self, config):
        self.sessions.append(config)
        return {"config": config}

    def send(self, session, message):
        self.sent.append((session, message))


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def sequential_ids():
    counter = itertools.count(1)
    return lambda: f"cid-{next(counter)}"


@pytest.fixture
def emailer(sequential_ids):
    mailer = Emailer("smtp.local", 587, "user", "secret", id_generator=sequential_ids)
    mailer.set_from("sender@example.com", "Sender")
    mailer.add_to("to@example.com")
    return mailer


@pytest.fixture
def resource_package(tmp_path, monkeypatch):
    """Importable throwaway package with a bundled image and text file."""
    name = f"emailer_res_{uuid.uuid4().hex[:8]}"
    root = tmp_path / name
    (root / "images").mkdir(parents=True)
    (root / "__init__.py").write_text("")
    (root / "images" / "logo.gif").write_bytes(b"GIF89a\x01\x00\x01\x00")
    (root / "notes.txt").write_text("bundled notes")
    monkeypatch.syspath_prepend(str(tmp_path))
    return name
