"""
Request Workspace
=================

Every conversion owns one temporary directory holding the uploaded source
and the generated artifact. The directory is removed exactly once, when
the workspace is closed, no matter which step failed.

Example:
    with RequestWorkspace() as workspace:
        source = workspace.save_upload("invoice.xml", content)
        pdf_path = workspace.artifact_path("invoice.pdf")
        ...
    # directory and both files are gone here
"""

from pathlib import Path
from typing import Optional, Union
import logging
import re
import shutil
import tempfile

logger = logging.getLogger(__name__)

DEFAULT_BASE_NAME = "document"

_UNSAFE_CHARS = re.compile(r"[^\w.\-]+")


def safe_base_name(filename: Optional[str]) -> str:
    """
    Derive an artifact base name from an uploaded file name.

    Directory components and the extension are dropped; characters outside
    ``[A-Za-z0-9_.-]`` become underscores.

    Example:
        >>> safe_base_name("../in/Rechnung 2024.xml")
        'Rechnung_2024'
    """
    stem = Path(filename or "").stem if filename else ""
    stem = _UNSAFE_CHARS.sub("_", stem).strip("._")
    return stem or DEFAULT_BASE_NAME


class RequestWorkspace:
    """
    Temporary directory owned by a single request.

    Args:
        root: Parent directory for workspaces (default: system temp dir)
        prefix: Directory name prefix
    """

    def __init__(self, root: Optional[Union[str, Path]] = None, prefix: str = "einvoice-"):
        self.root = Path(root) if root else None
        self.prefix = prefix
        self._path: Optional[Path] = None
        self._closed = False

    def open(self) -> "RequestWorkspace":
        """Create the directory; calling it twice is an error."""
        if self._path is not None:
            raise RuntimeError("Workspace already opened")
        if self.root is not None:
            self.root.mkdir(parents=True, exist_ok=True)
        self._path = Path(tempfile.mkdtemp(prefix=self.prefix, dir=str(self.root) if self.root else None))
        logger.debug(f"Opened workspace {self._path}")
        return self

    def __enter__(self) -> "RequestWorkspace":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def path(self) -> Path:
        if self._path is None or self._closed:
            raise RuntimeError("Workspace is not open")
        return self._path

    @property
    def closed(self) -> bool:
        return self._closed

    def save_upload(self, filename: Optional[str], content: bytes) -> Path:
        """Write uploaded content into the workspace and return its path."""
        suffix = Path(filename).suffix if filename else ""
        target = self.path / f"{safe_base_name(filename)}{_UNSAFE_CHARS.sub('', suffix) or '.xml'}"
        target.write_bytes(content)
        return target

    def artifact_path(self, name: str) -> Path:
        """Path for a generated file inside the workspace."""
        return self.path / Path(name).name

    def close(self) -> None:
        """Delete the workspace directory and everything in it."""
        if self._closed:
            return
        self._closed = True
        if self._path is not None and self._path.exists():
            shutil.rmtree(self._path)
            logger.debug(f"Removed workspace {self._path}")
