"""Hierarchical services: projects, branches, documents."""

from depository.services.branches import BranchesService
from depository.services.documents import DocumentsService
from depository.services.projects import ProjectsService

__all__ = [
    "BranchesService",
    "DocumentsService",
    "ProjectsService",
]
