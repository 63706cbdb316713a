"""
Depository document records and content-type resolution.

Physical storage: {root}/{project_id}/{branch_name}/{uri}
"""

from depository.documents.mime import MimeTypeResolver, get_mime_type
from depository.documents.models import BranchInfo, DocumentDto, ProjectInfo

__all__ = [
    "BranchInfo",
    "DocumentDto",
    "MimeTypeResolver",
    "ProjectInfo",
    "get_mime_type",
]
