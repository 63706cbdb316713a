"""
Depository Runtime — Composition root and transport-facing request interface.

Ties together:
- PathResolver / BinaryStore / ExistenceValidator (storage)
- ProjectsService / BranchesService / DocumentsService
- AsyncLogQueue (structured operation log)
- HealthCheckService (storage root check)

Provides:
- runtime.dispatch("documents.get", project_id=..., ...) → OperationResult
- runtime.dispatch_async(...) — same contract, awaited from a worker thread
- runtime.startup() / runtime.shutdown() — lifecycle management

Every collaborator is built here and passed down through constructors;
nothing is looked up from a global registry.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from depository.documents.mime import MimeTypeResolver
from depository.documents.models import BranchInfo, DocumentDto, ProjectInfo
from depository.engine.config import DepositoryConfig
from depository.engine.errors import DepositoryError, InvalidOperationError, StorageFailureError
from depository.engine.health import HealthCheckService, storage_root_check
from depository.engine.logging import AsyncLogQueue, create_log_queue, log_system_event
from depository.services.branches import BranchesService
from depository.services.documents import DocumentsService
from depository.services.projects import ProjectsService
from depository.storage.binary_store import BinaryStore
from depository.storage.paths import PathResolver
from depository.storage.validators import ExistenceValidator

logger = logging.getLogger("depository.engine.runtime")


@dataclass
class OperationResult:
    """Outcome of a dispatched operation: a value, or the typed error that stopped it."""

    operation: str
    ok: bool
    value: Any = None
    error: Optional[DepositoryError] = None

    @classmethod
    def success(cls, operation: str, value: Any = None) -> "OperationResult":
        return cls(operation=operation, ok=True, value=value)

    @classmethod
    def failure(cls, operation: str, error: DepositoryError) -> "OperationResult":
        return cls(operation=operation, ok=False, error=error)

    def unwrap(self) -> Any:
        """Return the value, or raise the carried error."""
        if not self.ok:
            raise self.error
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for a transport; pydantic values become plain dicts."""
        if not self.ok:
            return {"operation": self.operation, "ok": False, "error": self.error.to_dict()}
        return {"operation": self.operation, "ok": True, "value": _serialize(self.value)}


def _serialize(value: Any) -> Any:
    if isinstance(value, DocumentDto):
        return value.to_dict()
    if isinstance(value, (ProjectInfo, BranchInfo)):
        return value.model_dump()
    if isinstance(value, list):
        return [_serialize(v) for v in value]
    return value


class DepositoryRuntime:
    """
    Single entry point for transports.

    Lifecycle:
        runtime = DepositoryRuntime(config)
        runtime.startup()
        result = runtime.dispatch("documents.get", project_id="docs",
                                  branch_name="main", uri="index.md")
        runtime.shutdown()
    """

    def __init__(
        self,
        config: Optional[DepositoryConfig] = None,
        log_queue: Optional[AsyncLogQueue] = None,
    ):
        self.config = config or DepositoryConfig()

        if log_queue is None and self.config.logging.operation_log:
            queue_cfg = self.config.logging.async_queue
            log_queue = create_log_queue(
                log_dir=self.config.logging.directory,
                flush_interval_ms=queue_cfg.flush_interval_ms,
                flush_batch_size=queue_cfg.flush_batch_size,
                max_queue_size=queue_cfg.max_queue_size,
            )
        self.log_queue = log_queue

        self.resolver = PathResolver(self.config.storage_root)
        self.store = BinaryStore()
        self.validator = ExistenceValidator(self.resolver, self.store)
        self.mime = MimeTypeResolver(
            default=self.config.mime.default,
            overrides=self.config.mime.overrides,
        )

        self.projects = ProjectsService(self.resolver, self.store, self.validator, log_queue)
        self.branches = BranchesService(self.resolver, self.store, self.validator, log_queue)
        self.documents = DocumentsService(
            self.resolver, self.store, self.validator,
            mime_resolver=self.mime, log_queue=log_queue,
        )

        self.health = HealthCheckService()
        self.health.register_check("storage", storage_root_check(self.resolver.root))

        self._operations: Dict[str, Callable[..., Any]] = {
            "projects.list": self.projects.list,
            "projects.get": self.projects.get,
            "branches.list": self.branches.list,
            "branches.get": self.branches.get,
            "documents.list": self.documents.list,
            "documents.get": self.documents.get,
            "documents.create": self.documents.create,
            "documents.update": self.documents.update,
            "documents.delete": self.documents.delete,
        }
        self._started = False

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    def startup(self) -> None:
        if self._started:
            logger.warning("Runtime already started")
            return

        root = self.resolver.root
        if self.config.storage.create_root:
            try:
                root.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageFailureError(
                    f"Cannot create storage root {root}: {e}",
                    path=str(root),
                    operation="startup",
                ) from e
        elif not root.is_dir():
            logger.warning(f"Storage root does not exist: {root}")

        if self.log_queue is not None:
            self.log_queue.start()
            self.log_queue.push(log_system_event(
                "depository_started",
                details={"storage_root": str(root), "environment": self.config.service.environment},
            ))

        self._started = True
        logger.info(f"Depository runtime started (root={root})")

    def shutdown(self) -> None:
        if not self._started:
            return
        if self.log_queue is not None:
            self.log_queue.push(log_system_event("depository_shutdown"))
            self.log_queue.stop()
        self._started = False
        logger.info("Depository runtime shut down")

    def __enter__(self) -> "DepositoryRuntime":
        self.startup()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.shutdown()

    @property
    def started(self) -> bool:
        return self._started

    @property
    def operations(self) -> list:
        return sorted(self._operations)

    # -----------------------------------------------------------------------
    # Dispatch
    # -----------------------------------------------------------------------

    def dispatch(self, operation: str, **params: Any) -> OperationResult:
        """
        Run ``operation`` with keyword ``params`` and return its outcome.

        A ``document`` given as a dict is read in the to_dict() form, with
        base64 content, so a document returned by ``documents.get`` can be
        sent back unchanged.

        Domain failures come back as ``OperationResult(ok=False, error=...)``;
        anything that is not a DepositoryError is a bug and propagates.
        """
        handler = self._operations.get(operation)
        if handler is None:
            return OperationResult.failure(operation, InvalidOperationError(
                f"Unknown operation '{operation}'",
                operation=operation,
            ))

        if isinstance(params.get("document"), dict):
            try:
                params["document"] = DocumentDto.from_dict(params["document"])
            except ValidationError as e:
                return OperationResult.failure(operation, InvalidOperationError(
                    f"Invalid document payload for '{operation}': {e.error_count()} error(s)",
                    operation=operation,
                ))

        try:
            inspect.signature(handler).bind(**params)
        except TypeError as e:
            return OperationResult.failure(operation, InvalidOperationError(
                f"Invalid parameters for '{operation}': {e}",
                operation=operation,
            ))

        try:
            return OperationResult.success(operation, handler(**params))
        except DepositoryError as e:
            return OperationResult.failure(operation, e)

    async def dispatch_async(self, operation: str, **params: Any) -> OperationResult:
        """Async variant of dispatch(); filesystem work runs in a worker thread."""
        return await asyncio.to_thread(self.dispatch, operation, **params)

    async def check_health(self) -> Dict[str, Any]:
        await self.health.check_all()
        return self.health.get_overall_health()

    def __repr__(self) -> str:
        return f"<DepositoryRuntime root='{self.resolver.root}' started={self._started}>"


def create_runtime(
    config: Optional[DepositoryConfig] = None,
    storage_root: Optional[Path] = None,
) -> DepositoryRuntime:
    """Build a runtime, optionally pointing it at ``storage_root`` instead of the configured one."""
    config = config or DepositoryConfig()
    if storage_root is not None:
        config = config.model_copy(
            update={"storage": config.storage.model_copy(update={"root": str(storage_root)})}
        )
    return DepositoryRuntime(config)
