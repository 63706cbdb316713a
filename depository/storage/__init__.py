"""Depository storage layer: path resolution, byte store, existence guards."""

from depository.storage.binary_store import BinaryStore
from depository.storage.paths import PathResolver
from depository.storage.validators import ExistenceValidator

__all__ = [
    "BinaryStore",
    "ExistenceValidator",
    "PathResolver",
]
