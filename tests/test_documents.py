"""Unit tests for depository.services.documents — DocumentsService."""

import os

import pytest
from unittest.mock import patch

from depository.documents.models import DocumentDto
from depository.engine.errors import (
    BranchNotFoundError,
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    InvalidIdentifierError,
    ProjectNotFoundError,
    StorageFailureError,
    StoreNotFound,
)
from depository.engine.logging import AsyncLogQueue, FileLogger
from depository.services.documents import DocumentsService


def _doc(uri, content=b""):
    return DocumentDto(uri=uri, content=content)


class TestGet:
    def test_scenario_markdown(self, documents):
        documents.create("docs", "main", _doc("index.md", b"# Title"))
        doc = documents.get("docs", "main", "index.md")
        assert doc.name == "index.md"
        assert doc.uri == "index.md"
        assert doc.content_type == "text/markdown"
        assert doc.content == b"# Title"

    def test_round_trip_nested(self, documents, storage_root):
        documents.create("docs", "main", _doc("a/b.txt", b"X"))
        doc = documents.get("docs", "main", "a/b.txt")
        assert doc.content == b"X"
        assert doc.content_type == "text/plain"
        assert doc.name == "b.txt"
        assert (storage_root / "docs" / "main" / "a" / "b.txt").read_bytes() == b"X"

    def test_missing_document(self, documents):
        with pytest.raises(DocumentNotFoundError):
            documents.get("docs", "main", "missing.md")

    def test_late_store_not_found_becomes_document_not_found(self, documents):
        documents.create("docs", "main", _doc("a.md", b"x"))
        with patch.object(documents._store, "read", side_effect=StoreNotFound("gone")):
            with pytest.raises(DocumentNotFoundError):
                documents.get("docs", "main", "a.md")

    def test_other_storage_failures_propagate(self, documents):
        documents.create("docs", "main", _doc("a.md", b"x"))
        with patch.object(documents._store, "read", side_effect=StorageFailureError("denied")):
            with pytest.raises(StorageFailureError) as exc_info:
                documents.get("docs", "main", "a.md")
        assert not isinstance(exc_info.value, DocumentNotFoundError)

    def test_path_traversal_rejected(self, documents, storage_root, tmp_path):
        secret = tmp_path / "etc" / "passwd"
        secret.parent.mkdir()
        secret.write_bytes(b"root")
        with pytest.raises(InvalidIdentifierError):
            documents.get("docs", "main", "../../etc/passwd")
        with pytest.raises(InvalidIdentifierError):
            documents.get("docs", "main", "../../../etc/passwd")


class TestCreate:
    def test_conflict_keeps_first_content(self, documents):
        documents.create("docs", "main", _doc("x", b"first"))
        with pytest.raises(DocumentAlreadyExistsError):
            documents.create("docs", "main", _doc("x", b"second"))
        assert documents.get("docs", "main", "x").content == b"first"

    @pytest.mark.parametrize("uri", ["", "   "])
    def test_uri_required(self, documents, uri):
        with pytest.raises(InvalidIdentifierError):
            documents.create("docs", "main", _doc(uri, b"x"))

    def test_project_checked_before_uri(self, documents):
        with pytest.raises(ProjectNotFoundError):
            documents.create("nope", "main", _doc("", b"x"))

    def test_branch_checked_before_uri(self, documents):
        with pytest.raises(BranchNotFoundError):
            documents.create("docs", "dev", _doc("", b"x"))

    def test_traversal_rejected_and_nothing_written(self, documents, tmp_path):
        with pytest.raises(InvalidIdentifierError):
            documents.create("docs", "main", _doc("../../escape.txt", b"x"))
        assert not (tmp_path / "escape.txt").exists()

    def test_does_not_create_branch(self, documents, storage_root):
        with pytest.raises(BranchNotFoundError):
            documents.create("docs", "dev", _doc("a.md", b"x"))
        assert not (storage_root / "docs" / "dev").exists()


class TestUpdate:
    def test_overwrites_content(self, documents):
        documents.create("docs", "main", _doc("a.md", b"old content"))
        documents.update("docs", "main", "a.md", _doc("a.md", b"new"))
        assert documents.get("docs", "main", "a.md").content == b"new"

    def test_payload_uri_ignored(self, documents, storage_root):
        documents.create("docs", "main", _doc("a.md", b"old"))
        documents.update("docs", "main", "a.md", _doc("other.md", b"new"))
        assert documents.get("docs", "main", "a.md").content == b"new"
        assert not (storage_root / "docs" / "main" / "other.md").exists()

    def test_missing_document(self, documents, storage_root):
        with pytest.raises(DocumentNotFoundError):
            documents.update("docs", "main", "a.md", _doc("a.md", b"x"))
        assert not (storage_root / "docs" / "main" / "a.md").exists()


class TestDelete:
    def test_delete_then_everything_not_found(self, documents):
        documents.create("docs", "main", _doc("a/b.md", b"x"))
        documents.delete("docs", "main", "a/b.md")
        with pytest.raises(DocumentNotFoundError):
            documents.get("docs", "main", "a/b.md")
        with pytest.raises(DocumentNotFoundError):
            documents.update("docs", "main", "a/b.md", _doc("a/b.md", b"y"))
        with pytest.raises(DocumentNotFoundError):
            documents.delete("docs", "main", "a/b.md")

    def test_recreate_after_delete(self, documents):
        documents.create("docs", "main", _doc("a.md", b"one"))
        documents.delete("docs", "main", "a.md")
        documents.create("docs", "main", _doc("a.md", b"two"))
        assert documents.get("docs", "main", "a.md").content == b"two"

    def test_empty_folders_pruned_branch_kept(self, documents, storage_root):
        documents.create("docs", "main", _doc("a/b/c.md", b"x"))
        documents.delete("docs", "main", "a/b/c.md")
        assert not (storage_root / "docs" / "main" / "a").exists()
        assert (storage_root / "docs" / "main").is_dir()

    def test_late_store_not_found_becomes_document_not_found(self, documents):
        documents.create("docs", "main", _doc("a.md", b"x"))
        with patch.object(documents._store, "delete", side_effect=StoreNotFound("gone")):
            with pytest.raises(DocumentNotFoundError):
                documents.delete("docs", "main", "a.md")


class TestList:
    def test_lists_nested_uris(self, documents):
        documents.create("docs", "main", _doc("z.md"))
        documents.create("docs", "main", _doc("a/b.md"))
        assert documents.list("docs", "main") == ["a/b.md", "z.md"]

    def test_empty_branch(self, documents):
        assert documents.list("docs", "main") == []

    def test_missing_branch(self, documents):
        with pytest.raises(BranchNotFoundError):
            documents.list("docs", "dev")


class TestHierarchyIntegrity:
    """Missing ancestors are reported at the first missing level, for every operation."""

    OPERATIONS = [
        ("get", lambda s, p, b: s.get(p, b, "a.md")),
        ("create", lambda s, p, b: s.create(p, b, _doc("a.md", b"x"))),
        ("update", lambda s, p, b: s.update(p, b, "a.md", _doc("a.md", b"x"))),
        ("delete", lambda s, p, b: s.delete(p, b, "a.md")),
        ("list", lambda s, p, b: s.list(p, b)),
    ]

    @pytest.mark.parametrize("name,op", OPERATIONS)
    def test_missing_project(self, documents, name, op):
        with pytest.raises(ProjectNotFoundError):
            op(documents, "nope", "main")

    @pytest.mark.parametrize("name,op", OPERATIONS)
    def test_missing_branch_even_if_file_exists_elsewhere(self, documents, storage_root, name, op):
        (storage_root / "docs" / "main" / "a.md").write_bytes(b"x")
        with pytest.raises(BranchNotFoundError):
            op(documents, "docs", "dev")


class TestOperationLog:
    def test_entries_pushed(self, resolver, store, validator, tmp_path):
        file_logger = FileLogger(log_dir=str(tmp_path / "logs"))
        queue = AsyncLogQueue(file_logger)
        service = DocumentsService(resolver, store, validator, log_queue=queue)

        service.create("docs", "main", _doc("a.md", b"abc"))
        with pytest.raises(DocumentNotFoundError):
            service.get("docs", "main", "missing.md")
        queue.flush()

        ok = file_logger.query("documents", "execution")
        failed = file_logger.query("documents", "errors")
        assert ok[0]["event"] == "document_create"
        assert ok[0]["size_bytes"] == 3
        assert failed[0]["error"]["error_type"] == "DocumentNotFoundError"


class TestWithoutOperationLog:
    """Services built without a log queue return values and typed errors as usual."""

    def test_values_returned(self, resolver, store, validator, projects):
        service = DocumentsService(resolver, store, validator, log_queue=None)
        assert service.create("docs", "main", _doc("a.md", b"x")) is None
        assert service.get("docs", "main", "a.md").content == b"x"
        assert service.list("docs", "main") == ["a.md"]
        assert [p.id for p in projects.list()] == ["docs", "empty"]

    def test_typed_errors_raised(self, documents):
        with pytest.raises(DocumentNotFoundError):
            documents.get("docs", "main", "nope.md")
        with pytest.raises(ProjectNotFoundError):
            documents.create("ghost", "main", _doc("a.md"))


@pytest.mark.skipif(os.name != "posix", reason="needs symlinks")
class TestSymlinkEscape:
    @pytest.fixture
    def outside(self, storage_root, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "secret.txt").write_bytes(b"SECRET")
        (storage_root / "docs" / "main" / "link").symlink_to(outside, target_is_directory=True)
        return outside

    def test_get_through_link_rejected(self, documents, outside):
        with pytest.raises(InvalidIdentifierError):
            documents.get("docs", "main", "link/secret.txt")

    def test_update_and_delete_through_link_rejected(self, documents, outside):
        with pytest.raises(InvalidIdentifierError):
            documents.update("docs", "main", "link/secret.txt", _doc("link/secret.txt", b"pwned"))
        with pytest.raises(InvalidIdentifierError):
            documents.delete("docs", "main", "link/secret.txt")
        assert (outside / "secret.txt").read_bytes() == b"SECRET"

    def test_create_through_link_rejected(self, documents, outside):
        with pytest.raises(InvalidIdentifierError):
            documents.create("docs", "main", _doc("link/new.txt", b"x"))
        assert not (outside / "new.txt").exists()

    def test_file_link_hidden_from_list(self, documents, storage_root, outside):
        (storage_root / "docs" / "main" / "alias.txt").symlink_to(outside / "secret.txt")
        documents.create("docs", "main", _doc("real.txt", b"x"))
        assert documents.list("docs", "main") == ["real.txt"]

    def test_link_inside_root_still_readable(self, documents, storage_root):
        documents.create("docs", "main", _doc("target.txt", b"inside"))
        (storage_root / "docs" / "main" / "same.txt").symlink_to(storage_root / "docs" / "main" / "target.txt")
        assert documents.get("docs", "main", "same.txt").content == b"inside"
