"""
Path Resolver — (project_id, branch_name, uri) → physical path under the storage root.

Physical layout:
    {root}/{project_id}/{branch_name}/{uri}

Resolution is pure string/path arithmetic: it never touches the filesystem,
so the same inputs always produce the same path. Anything that could leave
the root (``..`` segments, absolute paths, drive letters, NUL bytes) is
rejected with InvalidIdentifierError instead of being silently rewritten.
"""

from __future__ import annotations

import re
from pathlib import Path, PurePosixPath
from typing import List, Optional

from depository.engine.errors import InvalidIdentifierError

_DRIVE_RE = re.compile(r"^[A-Za-z]:")


def _normalize_segments(value: str, identifier: str) -> List[str]:
    """Split ``value`` into safe path segments or raise InvalidIdentifierError."""
    if value is None or not str(value).strip():
        raise InvalidIdentifierError(
            f"{identifier} must be specified",
            identifier=identifier,
            value=value,
        )

    raw = str(value)
    if "\x00" in raw:
        raise InvalidIdentifierError(
            f"{identifier} contains a NUL byte",
            identifier=identifier,
            value=raw,
        )

    text = raw.replace("\\", "/")
    if text.startswith("/") or _DRIVE_RE.match(text):
        raise InvalidIdentifierError(
            f"{identifier} must be relative, got '{raw}'",
            identifier=identifier,
            value=raw,
        )

    segments = []
    for segment in text.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            raise InvalidIdentifierError(
                f"{identifier} must not traverse outside its parent, got '{raw}'",
                identifier=identifier,
                value=raw,
            )
        segments.append(segment)

    if not segments:
        raise InvalidIdentifierError(
            f"{identifier} is empty after normalization, got '{raw}'",
            identifier=identifier,
            value=raw,
        )
    return segments


def normalize_uri(uri: str) -> str:
    """Canonical POSIX form of a document URI (``a\\.\\b.txt`` → ``a/b.txt``)."""
    return "/".join(_normalize_segments(uri, "uri"))


def _single_segment(value: str, identifier: str) -> str:
    segments = _normalize_segments(value, identifier)
    if len(segments) != 1 or "/" in value or "\\" in value:
        raise InvalidIdentifierError(
            f"{identifier} must be a single path segment, got '{value}'",
            identifier=identifier,
            value=value,
        )
    return segments[0]


class PathResolver:
    """Maps depository identifiers to physical locations under ``root``."""

    def __init__(self, root: Path):
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def project_path(self, project_id: str) -> Path:
        return self._root / _single_segment(project_id, "project_id")

    def branch_path(self, project_id: str, branch_name: str) -> Path:
        return self.project_path(project_id) / _single_segment(branch_name, "branch_name")

    def document_path(self, project_id: str, branch_name: str, uri: str) -> Path:
        segments = _normalize_segments(uri, "uri")
        return self.branch_path(project_id, branch_name).joinpath(*segments)

    def resolve(
        self,
        project_id: str,
        branch_name: Optional[str] = None,
        uri: Optional[str] = None,
    ) -> Path:
        """
        Resolve the deepest level given.

        ``uri`` without ``branch_name`` is rejected since documents only live
        inside branches.
        """
        if uri is not None:
            if branch_name is None:
                raise InvalidIdentifierError(
                    "branch_name is required to resolve a document",
                    identifier="branch_name",
                    project_id=project_id,
                    uri=uri,
                )
            return self.document_path(project_id, branch_name, uri)
        if branch_name is not None:
            return self.branch_path(project_id, branch_name)
        return self.project_path(project_id)

    @staticmethod
    def relative_uri(branch_dir: Path, file_path: Path) -> str:
        """Document URI of ``file_path`` relative to its branch directory."""
        return PurePosixPath(*Path(file_path).relative_to(branch_dir).parts).as_posix()

    def __repr__(self) -> str:
        return f"<PathResolver root='{self._root}'>"
