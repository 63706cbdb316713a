"""
Integration test fixtures — a complete on-disk depository with config file.
Mark with @pytest.mark.integration to skip in unit-only runs.

Run: pytest tests/integration/ -v -m integration
"""

from __future__ import annotations

import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: exercises a full on-disk depository")


@pytest.fixture
def integration_project(tmp_path):
    """
    Create a depository deployment for integration testing:
    depository.yaml, a populated storage tree, and a log directory.
    """
    root = tmp_path / "deployment"
    storage = root / "storage"

    (root / "depository.yaml").parent.mkdir(parents=True)
    (root / "depository.yaml").write_text(
        "service:\n"
        "  name: integration-depository\n"
        "  environment: staging\n"
        "storage:\n"
        "  root: " + str(storage) + "\n"
        "mime:\n"
        "  overrides:\n"
        "    adoc: text/asciidoc\n"
        "logging:\n"
        "  level: WARNING\n"
        "  directory: " + str(root / ".depository" / "logs") + "\n"
        "  async_queue:\n"
        "    flush_interval_ms: 10\n",
        encoding="utf-8",
    )

    handbook = storage / "handbook"
    (handbook / "main" / "guides").mkdir(parents=True)
    (handbook / "main" / "index.md").write_bytes(b"# Handbook\n")
    (handbook / "main" / "guides" / "setup.adoc").write_bytes(b"= Setup\n")
    (handbook / "draft").mkdir()

    (storage / "api").mkdir()
    (storage / "api" / "v1").mkdir()
    (storage / "api" / "v1" / "openapi.yaml").write_bytes(b"openapi: 3.0.0\n")

    return root
