"""
Existence Validator — Guard clauses over the Binary Store's checks.

Each check raises on failure and returns the resolved path on success.
Ancestor checks always run before the target level, and the first missing
ancestor decides the error: asking for a branch under a missing project
reports ProjectNotFoundError, never BranchNotFoundError.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from depository.engine.errors import (
    BranchNotFoundError,
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    InvalidIdentifierError,
    ProjectNotFoundError,
)
from depository.storage.binary_store import BinaryStore
from depository.storage.paths import PathResolver


class ExistenceValidator:
    """Stateless precondition checks for projects, branches and documents."""

    def __init__(self, resolver: PathResolver, store: BinaryStore):
        self._resolver = resolver
        self._store = store

    def project_must_exist(self, project_id: str) -> Path:
        path = self._resolver.project_path(project_id)
        if not self._store.is_directory(path):
            raise ProjectNotFoundError(
                f"Project '{project_id}' not exists.",
                project_id=project_id,
            )
        return path

    def branch_must_exist(self, project_id: str, branch_name: str) -> Path:
        self.project_must_exist(project_id)
        path = self._resolver.branch_path(project_id, branch_name)
        if not self._store.is_directory(path):
            raise BranchNotFoundError(
                f"Branch '{branch_name}' not exists in project '{project_id}'.",
                project_id=project_id,
                branch_name=branch_name,
            )
        return path

    def document_must_exist(self, project_id: str, branch_name: str, uri: str) -> Path:
        self.branch_must_exist(project_id, branch_name)
        path = self._resolver.document_path(project_id, branch_name, uri)
        self.must_stay_inside_root(path, project_id, branch_name, uri)
        if not self._store.is_file(path):
            raise DocumentNotFoundError(
                f"Document '{uri}' not exists in branch '{branch_name}' in project '{project_id}'.",
                project_id=project_id,
                branch_name=branch_name,
                uri=uri,
            )
        return path

    def document_must_not_exist(self, project_id: str, branch_name: str, uri: str) -> Path:
        path = self._resolver.document_path(project_id, branch_name, uri)
        self.must_stay_inside_root(path, project_id, branch_name, uri)
        if self._store.exists(path):
            raise DocumentAlreadyExistsError(
                f"Document '{uri}' already exists in branch '{branch_name}' in project '{project_id}'.",
                project_id=project_id,
                branch_name=branch_name,
                uri=uri,
            )
        return path

    def is_inside_root(self, path: Path) -> bool:
        """True if ``path``, with every symlink followed, is still under the storage root."""
        return Path(path).resolve().is_relative_to(self._resolver.root.resolve())

    def must_stay_inside_root(self, path: Path, project_id: str, branch_name: str, uri: str) -> None:
        if not self.is_inside_root(path):
            raise InvalidIdentifierError(
                f"Document '{uri}' resolves outside the storage root.",
                identifier="uri",
                value=uri,
                project_id=project_id,
                branch_name=branch_name,
                uri=uri,
            )

    @staticmethod
    def uri_must_be_specified(uri: Optional[str]) -> None:
        if uri is None or not str(uri).strip():
            raise InvalidIdentifierError(
                "Document uri must be specified.",
                identifier="uri",
                value=uri,
            )
