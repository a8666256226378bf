"""Attachment sources and their resolvers.

An attachment is either a :class:`FileAttachment` (a path on disk) or a
:class:`ResourceAttachment` (a file bundled inside an importable package).
Each variant knows how to turn itself into an :class:`AttachmentContent`;
the builder never switches on the source kind.
"""

from dataclasses import dataclass
from enum import Enum
from importlib import resources
from os.path import basename
from re import split
from typing import Callable, NamedTuple, Optional, Union
from uuid import uuid4

from .exceptions import AttachmentReadError, ConfigurationError
from .logger import get_logger

logger = get_logger(__name__)

IdGenerator = Callable[[], str]


def new_content_id() -> str:
    """Default content-id generator: a random UUID4 string."""
    return str(uuid4())


class AttachmentType(Enum):
    """How an attachment is loaded."""

    FILE = "file"
    """Loaded from the file system; the path is relative or absolute."""

    RESOURCE = "resource"
    """Loaded from the resources bundled with an importable package."""


class AttachmentContent(NamedTuple):
    filename: str
    data: bytes


@dataclass(frozen=True)
class FileAttachment:
    """A file read from disk at render time."""

    path: str
    content_id: str = ""

    kind = AttachmentType.FILE

    def resolve(self) -> AttachmentContent:
        """Reads the whole file.

        Raises:
            AttachmentReadError: If the file cannot be opened or read.
        """
        try:
            with open(self.path, "rb") as f:
                data = f.read()
        except OSError as exc:
            raise AttachmentReadError(self.path, exc.strerror or str(exc)) from exc
        return AttachmentContent(basename(self.path), data)


@dataclass(frozen=True)
class ResourceAttachment:
    """A file bundled inside a Python package.

    ``path`` is looked up relative to ``package``. Without a package the first
    path segment names the top-level package, so ``"myapp/img/logo.gif"``
    resolves ``img/logo.gif`` inside ``myapp``.
    Paths containing ``.`` or ``..`` segments never resolve.
    """

    path: str
    content_id: str = ""
    package: Optional[str] = None

    kind = AttachmentType.RESOURCE

    def _locate(self):
        segments = [s for s in split(r"[/\\]", self.path) if s]
        if any(s in (".", "..") for s in segments):
            return None
        package = self.package
        if package is None:
            if len(segments) < 2:
                return None
            package, segments = segments[0], segments[1:]
        try:
            target = resources.files(package)
        except (ModuleNotFoundError, TypeError, ValueError):
            return None
        for segment in segments:
            target = target.joinpath(segment)
        return target

    def resolve(self) -> Optional[AttachmentContent]:
        """Returns the resource content, or ``None`` when it does not exist."""
        target = self._locate()
        if target is None or not target.is_file():
            logger.debug("Resource %r not found (package=%r)", self.path, self.package)
            return None
        filename = split(r"[/\\]", self.path)[-1]
        return AttachmentContent(filename, target.read_bytes())


Attachment = Union[FileAttachment, ResourceAttachment]


def make_attachment(
    kind: AttachmentType, path: str, content_id: str, package: Optional[str] = None
) -> Attachment:
    """Builds the attachment variant matching ``kind``."""
    if kind is AttachmentType.FILE:
        return FileAttachment(path, content_id)
    if kind is AttachmentType.RESOURCE:
        return ResourceAttachment(path, content_id, package)
    raise ConfigurationError(f"Unknown attachment type: {kind!r}")
