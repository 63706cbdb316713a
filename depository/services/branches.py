"""Branches Service — read-only view of the branch directories of a project."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from depository.documents.models import BranchInfo
from depository.engine.errors import DepositoryError
from depository.engine.logging import log_hierarchy_query
from depository.services.base import BaseService


class BranchesService(BaseService):

    def list(self, project_id: str) -> List[BranchInfo]:
        with self._track("list", project_id=project_id) as info:
            path = self._validator.project_must_exist(project_id)
            branches = [
                BranchInfo(project_id=project_id, name=name)
                for name in self._store.list_directories(path)
            ]
            info["result_count"] = len(branches)
            return branches

    def get(self, project_id: str, branch_name: str) -> BranchInfo:
        with self._track("get", project_id=project_id, branch_name=branch_name):
            self._validator.branch_must_exist(project_id, branch_name)
            return BranchInfo(project_id=project_id, name=branch_name)

    def _log_operation(
        self,
        operation: str,
        ids: Dict[str, Any],
        info: Dict[str, Any],
        duration_ms: float,
        error: Optional[DepositoryError],
    ) -> None:
        self._push(log_hierarchy_query(
            "branches",
            operation,
            project_id=ids.get("project_id"),
            branch_name=ids.get("branch_name"),
            success=error is None,
            result_count=info.get("result_count"),
            error_type=error.error_type if error else None,
        ))
