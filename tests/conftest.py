"""
Depository Test Suite — Shared fixtures.

Run:  pytest tests/ -v
"""

from __future__ import annotations

from pathlib import Path

import pytest

from depository.engine.config import DepositoryConfig
from depository.engine.runtime import DepositoryRuntime
from depository.services.branches import BranchesService
from depository.services.documents import DocumentsService
from depository.services.projects import ProjectsService
from depository.storage.binary_store import BinaryStore
from depository.storage.paths import PathResolver
from depository.storage.validators import ExistenceValidator


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    """Keep DEPOSITORY_* variables and CWD-relative log dirs out of tests."""
    for var in ("DEPOSITORY_STORAGE_ROOT", "DEPOSITORY_ENVIRONMENT", "DEPOSITORY_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def storage_root(tmp_path) -> Path:
    """
    Storage root with project 'docs' → branch 'main' (empty) and
    project 'empty' with no branches.
    """
    root = tmp_path / "storage"
    (root / "docs" / "main").mkdir(parents=True)
    (root / "empty").mkdir()
    return root


@pytest.fixture
def resolver(storage_root) -> PathResolver:
    return PathResolver(storage_root)


@pytest.fixture
def store() -> BinaryStore:
    return BinaryStore()


@pytest.fixture
def validator(resolver, store) -> ExistenceValidator:
    return ExistenceValidator(resolver, store)


@pytest.fixture
def documents(resolver, store, validator) -> DocumentsService:
    return DocumentsService(resolver, store, validator)


@pytest.fixture
def projects(resolver, store, validator) -> ProjectsService:
    return ProjectsService(resolver, store, validator)


@pytest.fixture
def branches(resolver, store, validator) -> BranchesService:
    return BranchesService(resolver, store, validator)


@pytest.fixture
def config(storage_root, tmp_path) -> DepositoryConfig:
    return DepositoryConfig(
        storage={"root": str(storage_root)},
        logging={
            "directory": str(tmp_path / "logs"),
            "async_queue": {"flush_interval_ms": 10},
        },
    )


@pytest.fixture
def runtime(config):
    rt = DepositoryRuntime(config)
    rt.startup()
    yield rt
    rt.shutdown()
