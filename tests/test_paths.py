"""Unit tests for depository.storage.paths — PathResolver."""

import pytest
from pathlib import Path

from depository.engine.errors import InvalidIdentifierError
from depository.storage.paths import PathResolver, normalize_uri


@pytest.fixture
def root(tmp_path):
    return tmp_path / "root"


class TestResolve:
    def test_project(self, root):
        assert PathResolver(root).resolve("docs") == root / "docs"

    def test_branch(self, root):
        assert PathResolver(root).resolve("docs", "main") == root / "docs" / "main"

    def test_document_with_subdirectories(self, root):
        path = PathResolver(root).resolve("docs", "main", "guide/intro/index.md")
        assert path == root / "docs" / "main" / "guide" / "intro" / "index.md"

    def test_deterministic(self, root):
        resolver = PathResolver(root)
        assert resolver.resolve("docs", "main", "a/b.txt") == resolver.resolve("docs", "main", "a/b.txt")

    def test_no_filesystem_access(self, root):
        # root does not exist; resolution must still succeed
        assert not root.exists()
        PathResolver(root).resolve("docs", "main", "a.md")
        assert not root.exists()

    def test_uri_without_branch_rejected(self, root):
        with pytest.raises(InvalidIdentifierError):
            PathResolver(root).resolve("docs", uri="a.md")

    def test_backslashes_and_dots_normalized(self, root):
        path = PathResolver(root).resolve("docs", "main", "a\\.\\b.txt")
        assert path == root / "docs" / "main" / "a" / "b.txt"


class TestTraversalSafety:
    @pytest.mark.parametrize("uri", [
        "../../etc/passwd",
        "a/../../b",
        "..",
        "a/..",
        "/etc/passwd",
        "\\windows\\system32",
        "C:\\boot.ini",
        "a\x00b",
    ])
    def test_unsafe_uri_rejected(self, root, uri):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            PathResolver(root).document_path("docs", "main", uri)
        assert exc_info.value.identifier == "uri"

    @pytest.mark.parametrize("project_id", ["..", "a/b", "a\\b", "/abs", "", "   ", "."])
    def test_unsafe_project_rejected(self, root, project_id):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            PathResolver(root).project_path(project_id)
        assert exc_info.value.identifier == "project_id"

    @pytest.mark.parametrize("branch_name", ["..", "feature/x", ""])
    def test_unsafe_branch_rejected(self, root, branch_name):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            PathResolver(root).branch_path("docs", branch_name)
        assert exc_info.value.identifier == "branch_name"

    @pytest.mark.parametrize("uri", ["", "   ", "./", None])
    def test_empty_uri_rejected(self, root, uri):
        with pytest.raises(InvalidIdentifierError):
            PathResolver(root).document_path("docs", "main", uri)

    def test_repeated_separators_collapsed(self, root):
        assert PathResolver(root).document_path("docs", "main", "a//") == root / "docs" / "main" / "a"

    def test_resolved_paths_stay_under_root(self, root):
        resolver = PathResolver(root)
        path = resolver.document_path("docs", "main", "a/./b/c.md")
        assert root in path.parents


class TestHelpers:
    def test_normalize_uri(self):
        assert normalize_uri("a\\b/./c.md") == "a/b/c.md"

    def test_relative_uri(self, root):
        branch = root / "docs" / "main"
        assert PathResolver.relative_uri(branch, branch / "a" / "b.md") == "a/b.md"

    def test_root_property(self, root):
        assert PathResolver(root).root == Path(root)
