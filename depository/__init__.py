"""
Depository — Hierarchical document store (project → branch → document) on a filesystem.

Usage:
    from depository import DepositoryRuntime, load_config

    with DepositoryRuntime(load_config()) as runtime:
        result = runtime.dispatch("documents.get", project_id="docs",
                                  branch_name="main", uri="index.md")
"""

from depository.engine.config import DepositoryConfig, load_config
from depository.engine.runtime import DepositoryRuntime, OperationResult, create_runtime

__version__ = "1.0.0"
__all__ = [
    "DepositoryConfig",
    "DepositoryRuntime",
    "OperationResult",
    "create_runtime",
    "load_config",
]
