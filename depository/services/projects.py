"""Projects Service — read-only view of the project directories under the storage root."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from depository.documents.models import ProjectInfo
from depository.engine.errors import DepositoryError
from depository.engine.logging import log_hierarchy_query
from depository.services.base import BaseService


class ProjectsService(BaseService):
    """Projects are provisioned elsewhere; this only lists and looks them up."""

    def list(self) -> List[ProjectInfo]:
        with self._track("list") as info:
            root = self._resolver.root
            if not self._store.is_directory(root):
                info["result_count"] = 0
                return []
            projects = [
                ProjectInfo(id=name, branches=self._store.list_directories(root / name))
                for name in self._store.list_directories(root)
            ]
            info["result_count"] = len(projects)
            return projects

    def get(self, project_id: str) -> ProjectInfo:
        with self._track("get", project_id=project_id):
            path = self._validator.project_must_exist(project_id)
            return ProjectInfo(id=project_id, branches=self._store.list_directories(path))

    def _log_operation(
        self,
        operation: str,
        ids: Dict[str, Any],
        info: Dict[str, Any],
        duration_ms: float,
        error: Optional[DepositoryError],
    ) -> None:
        self._push(log_hierarchy_query(
            "projects",
            operation,
            project_id=ids.get("project_id"),
            success=error is None,
            result_count=info.get("result_count"),
            error_type=error.error_type if error else None,
        ))
