"""
Documents Service — CRUD for documents inside a branch.

Every operation runs its guards in a fixed order before touching content:

    project exists → branch exists → (uri specified) → document (not) exists → execute

A failed guard raises immediately, so nothing is written, overwritten or
removed unless all preconditions held.
"""

from __future__ import annotations

import logging
import posixpath
from typing import Any, Dict, List, Optional

from depository.documents.mime import MimeTypeResolver
from depository.documents.models import DocumentDto
from depository.engine.errors import DepositoryError, DocumentNotFoundError, StoreNotFound
from depository.engine.logging import AsyncLogQueue, log_document_operation
from depository.services.base import BaseService
from depository.storage.binary_store import BinaryStore
from depository.storage.paths import PathResolver, normalize_uri
from depository.storage.validators import ExistenceValidator

logger = logging.getLogger("depository.services.documents")


class DocumentsService(BaseService):
    """Reads, creates, overwrites and deletes documents."""

    def __init__(
        self,
        resolver: PathResolver,
        store: BinaryStore,
        validator: ExistenceValidator,
        mime_resolver: Optional[MimeTypeResolver] = None,
        log_queue: Optional[AsyncLogQueue] = None,
    ):
        super().__init__(resolver, store, validator, log_queue)
        self._mime = mime_resolver or MimeTypeResolver()

    def get(self, project_id: str, branch_name: str, uri: str) -> DocumentDto:
        with self._track("get", project_id=project_id, branch_name=branch_name, uri=uri) as info:
            self._resolver.document_path(project_id, branch_name, uri)
            path = self._validator.document_must_exist(project_id, branch_name, uri)

            try:
                content = self._store.read(path)
            except StoreNotFound as e:
                # Removed between the existence check and the read.
                raise self._not_found(project_id, branch_name, uri) from e

            info["size_bytes"] = len(content)
            return DocumentDto(
                uri=uri,
                name=posixpath.basename(normalize_uri(uri)),
                content_type=self._mime.resolve(uri),
                content=content,
            )

    def create(self, project_id: str, branch_name: str, document: DocumentDto) -> None:
        uri = document.uri
        with self._track("create", project_id=project_id, branch_name=branch_name, uri=uri) as info:
            self._validator.branch_must_exist(project_id, branch_name)
            self._validator.uri_must_be_specified(uri)
            path = self._validator.document_must_not_exist(project_id, branch_name, uri)

            info["size_bytes"] = self._store.write(path, document.content)
            logger.info(f"Created document '{uri}' in {project_id}/{branch_name}")

    def update(
        self,
        project_id: str,
        branch_name: str,
        uri: str,
        document: DocumentDto,
    ) -> None:
        with self._track("update", project_id=project_id, branch_name=branch_name, uri=uri) as info:
            self._resolver.document_path(project_id, branch_name, uri)
            path = self._validator.document_must_exist(project_id, branch_name, uri)

            info["size_bytes"] = self._store.write(path, document.content)
            logger.info(f"Updated document '{uri}' in {project_id}/{branch_name}")

    def delete(self, project_id: str, branch_name: str, uri: str) -> None:
        with self._track("delete", project_id=project_id, branch_name=branch_name, uri=uri):
            self._resolver.document_path(project_id, branch_name, uri)
            path = self._validator.document_must_exist(project_id, branch_name, uri)

            try:
                self._store.delete(path)
            except StoreNotFound as e:
                raise self._not_found(project_id, branch_name, uri) from e

            self._store.prune_empty_parents(
                path, stop=self._resolver.branch_path(project_id, branch_name)
            )
            logger.info(f"Deleted document '{uri}' from {project_id}/{branch_name}")

    def list(self, project_id: str, branch_name: str) -> List[str]:
        """Sorted uris of every document in the branch."""
        with self._track("list", project_id=project_id, branch_name=branch_name) as info:
            branch_dir = self._validator.branch_must_exist(project_id, branch_name)
            uris = sorted(
                self._resolver.relative_uri(branch_dir, p)
                for p in self._store.list_files(branch_dir)
                if self._validator.is_inside_root(p)
            )
            info["result_count"] = len(uris)
            return uris

    @staticmethod
    def _not_found(project_id: str, branch_name: str, uri: str) -> DocumentNotFoundError:
        return DocumentNotFoundError(
            f"Document '{uri}' not exists in branch '{branch_name}' in project '{project_id}'.",
            project_id=project_id,
            branch_name=branch_name,
            uri=uri,
        )

    def _log_operation(
        self,
        operation: str,
        ids: Dict[str, Any],
        info: Dict[str, Any],
        duration_ms: float,
        error: Optional[DepositoryError],
    ) -> None:
        self._push(log_document_operation(
            operation=operation,
            project_id=ids.get("project_id"),
            branch_name=ids.get("branch_name"),
            uri=ids.get("uri"),
            duration_ms=duration_ms,
            success=error is None,
            size_bytes=info.get("size_bytes"),
            error=error.to_dict() if error else None,
        ))
