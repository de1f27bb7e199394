"""
files/storage.py -- Static file directory bootstrap and upload persistence.

Layout under STATIC_FILES_DIR:
  public/  -- served read-only at /public by api/main.py
  tmp/     -- scratch space, never served

Uploaded files are renamed to <uuid4><ext> so a client-supplied filename never
reaches the filesystem. The extension is derived from the declared content
type; an unknown type gets no extension.
"""

import logging
import mimetypes
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger("boilerplate.files")

PUBLIC_DIR = "public"
TMP_DIR = "tmp"


@dataclass(frozen=True)
class StaticFile:
    """A stored upload. filename is the on-disk name, name is the client label."""

    id: str
    filename: str
    name: str


def ensure_directories(root: Path) -> None:
    """Create root, root/public and root/tmp if they do not exist."""
    for path in (root, root / PUBLIC_DIR, root / TMP_DIR):
        if not path.exists():
            path.mkdir(parents=True, exist_ok=True)
            logger.info("Created directory %s", path)


def extension_for(content_type: Optional[str]) -> str:
    if not content_type:
        return ""
    return mimetypes.guess_extension(content_type.split(";")[0].strip()) or ""


def save_upload(name: str, content: bytes, content_type: Optional[str], directory: Path) -> StaticFile:
    """Write content to directory as <uuid4><ext> and describe the result."""
    file_id = str(uuid.uuid4())
    filename = f"{file_id}{extension_for(content_type)}"
    (directory / filename).write_bytes(content)
    logger.info("Stored upload %s (%d bytes)", filename, len(content))
    return StaticFile(id=file_id, filename=filename, name=name)
