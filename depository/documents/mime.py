"""MIME Resolver — file extension → content type."""

from __future__ import annotations

import mimetypes
import posixpath
from typing import Dict, Optional

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Checked before the platform's mimetypes registry, whose answers vary by OS.
KNOWN_TYPES: Dict[str, str] = {
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".txt": "text/plain",
    ".log": "text/plain",
    ".csv": "text/csv",
    ".htm": "text/html",
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".xml": "application/xml",
    ".yml": "application/x-yaml",
    ".yaml": "application/x-yaml",
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".gz": "application/gzip",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".webp": "image/webp",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}


class MimeTypeResolver:
    """
    Pure lookup: overrides, then KNOWN_TYPES, then mimetypes, then ``default``.
    Never raises.
    """

    def __init__(
        self,
        default: str = DEFAULT_CONTENT_TYPE,
        overrides: Optional[Dict[str, str]] = None,
    ):
        self._default = default
        self._types = dict(KNOWN_TYPES)
        for ext, content_type in (overrides or {}).items():
            ext = ext.lower()
            self._types[ext if ext.startswith(".") else f".{ext}"] = content_type

    @property
    def default(self) -> str:
        return self._default

    @staticmethod
    def extension(file_name: str) -> str:
        """Lower-cased extension including the dot, '' if there is none."""
        base = posixpath.basename((file_name or "").replace("\\", "/"))
        _, ext = posixpath.splitext(base)
        return ext.lower()

    def resolve(self, file_name: str) -> str:
        ext = self.extension(file_name)
        if not ext:
            return self._default
        if ext in self._types:
            return self._types[ext]
        guessed, _ = mimetypes.guess_type(f"file{ext}", strict=False)
        return guessed or self._default


_default_resolver = MimeTypeResolver()


def get_mime_type(file_name: str) -> str:
    """Content type for ``file_name`` using the built-in table."""
    return _default_resolver.resolve(file_name)
