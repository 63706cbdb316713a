"""
Depository Error Hierarchy — Typed failures for the storage/validation pipeline.

Every error carries the identifiers it was raised for (project_id,
branch_name, uri, path) so transports can log and map it without parsing
messages. ``status_hint`` names the response class a transport should use;
the actual mapping (HTTP status, exit code) belongs to the transport.

Hierarchy:
    DepositoryError
    ├── InvalidIdentifierError      — Empty, malformed or unsafe identifier
    ├── InvalidOperationError       — Unknown runtime operation
    ├── ProjectNotFoundError        — Project directory absent
    ├── BranchNotFoundError         — Branch directory absent
    ├── DocumentNotFoundError       — Document file absent
    ├── DocumentAlreadyExistsError  — Document file already present
    ├── StorageFailureError         — Unclassified filesystem failure
    │   └── StoreNotFound           — Store-level "path not found" signal
    └── ConfigurationError          — Invalid depository.yaml / environment
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class DepositoryError(Exception):
    """
    Base error for all depository failures.
    All context is serializable to JSON.
    """

    status_hint: str = "error"

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.project_id: Optional[str] = context.get("project_id")
        self.branch_name: Optional[str] = context.get("branch_name")
        self.uri: Optional[str] = context.get("uri")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict for logging and transports."""
        return {
            "error_type": self.error_type,
            "status_hint": self.status_hint,
            "message": self.message,
            "project_id": self.project_id,
            "branch_name": self.branch_name,
            "uri": self.uri,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("project_id", "branch_name", "uri")
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.project_id:
            parts.append(f"project_id={self.project_id}")
        if self.branch_name:
            parts.append(f"branch_name={self.branch_name}")
        if self.uri:
            parts.append(f"uri={self.uri}")
        return " | ".join(parts)


class InvalidIdentifierError(DepositoryError):
    """
    An identifier is empty, malformed or would escape the storage root.
    ``identifier`` names which input was rejected (project_id, branch_name, uri).
    """

    status_hint = "bad_request"

    def __init__(self, message: str, **context: Any):
        self.identifier: Optional[str] = context.get("identifier")
        self.value: Optional[str] = context.get("value")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["identifier"] = self.identifier
        return d


class InvalidOperationError(DepositoryError):
    """The runtime was asked to dispatch an operation it does not know."""

    status_hint = "bad_request"

    def __init__(self, message: str, **context: Any):
        self.operation: Optional[str] = context.get("operation")
        super().__init__(message, **context)


class ProjectNotFoundError(DepositoryError):
    """Project directory does not exist."""

    status_hint = "not_found"


class BranchNotFoundError(DepositoryError):
    """Branch directory does not exist inside an existing project."""

    status_hint = "not_found"


class DocumentNotFoundError(DepositoryError):
    """Document file does not exist inside an existing branch."""

    status_hint = "not_found"


class DocumentAlreadyExistsError(DepositoryError):
    """Create was requested for a document that is already present."""

    status_hint = "conflict"


class StorageFailureError(DepositoryError):
    """
    Filesystem operation failed for a reason not otherwise classified
    (permission denied, disk full, path is a directory, ...).
    """

    status_hint = "storage_failure"

    def __init__(self, message: str, **context: Any):
        self.path: Optional[str] = context.get("path")
        self.operation: Optional[str] = context.get("operation")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["path"] = self.path
        d["operation"] = self.operation
        return d


class StoreNotFound(StorageFailureError):
    """Binary store signal: the path does not exist or is not a regular file."""

    status_hint = "not_found"


class ConfigurationError(DepositoryError):
    """Configuration error — invalid depository.yaml or environment override."""

    def __init__(self, message: str, **context: Any):
        self.validation_errors: Optional[list] = context.get("validation_errors")
        super().__init__(message, **context)
