"""
Binary Store — Raw byte I/O on resolved physical paths.

- read / write / delete / exists / is_directory / list_* on a Path
- Writes are atomic: content goes to a temp file in the target directory
  and is moved into place with os.replace(), so readers see either the old
  or the new content, never a partial file
- "Not found" conditions surface as StoreNotFound; every other OSError
  surfaces as StorageFailureError
- No caching: every call checks the filesystem
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import List, Optional

from depository.engine.errors import StorageFailureError, StoreNotFound

logger = logging.getLogger("depository.storage.binary_store")

TEMP_PREFIX = ".depository-tmp-"


def _process_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


# Mode for newly created documents, as open() would give them.
NEW_FILE_MODE = 0o666 & ~_process_umask()


class BinaryStore:
    """Filesystem-backed byte store. Stateless; safe to share between threads."""

    def read(self, path: Path) -> bytes:
        """Return the content of the regular file at ``path``."""
        try:
            with open(path, "rb") as f:
                return f.read()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise StoreNotFound(
                f"File not found: {path}", path=str(path), operation="read"
            ) from e
        except OSError as e:
            raise StorageFailureError(
                f"Failed to read {path}: {e}", path=str(path), operation="read"
            ) from e

    def write(self, path: Path, data: bytes) -> int:
        """
        Atomically write ``data`` to ``path``, creating parent directories.

        Returns the number of bytes written.
        """
        path = Path(path)
        tmp_path: Optional[str] = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=str(path.parent))
            with os.fdopen(fd, "wb") as f:
                os.fchmod(f.fileno(), self._target_mode(path))
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
            tmp_path = None
        except OSError as e:
            raise StorageFailureError(
                f"Failed to write {path}: {e}", path=str(path), operation="write"
            ) from e
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except FileNotFoundError:
                    pass

        logger.debug(f"Wrote {len(data)} bytes to {path}")
        return len(data)

    @staticmethod
    def _target_mode(path: Path) -> int:
        """Permission bits the replaced file keeps, or NEW_FILE_MODE for a new one."""
        try:
            return stat.S_IMODE(os.stat(path).st_mode)
        except FileNotFoundError:
            return NEW_FILE_MODE

    def delete(self, path: Path) -> None:
        """Remove the regular file at ``path``."""
        path = Path(path)
        if path.is_dir():
            raise StoreNotFound(
                f"Not a regular file: {path}", path=str(path), operation="delete"
            )
        try:
            path.unlink()
        except (FileNotFoundError, NotADirectoryError) as e:
            raise StoreNotFound(
                f"File not found: {path}", path=str(path), operation="delete"
            ) from e
        except OSError as e:
            raise StorageFailureError(
                f"Failed to delete {path}: {e}", path=str(path), operation="delete"
            ) from e
        logger.debug(f"Deleted {path}")

    def prune_empty_parents(self, path: Path, stop: Path) -> None:
        """
        Remove empty directories from ``path.parent`` up to, not including, ``stop``.

        Stops at the first non-empty directory. A concurrent writer that
        repopulates a directory simply makes rmdir fail, which ends pruning.
        """
        stop = Path(stop)
        current = Path(path).parent
        while current != stop and stop in current.parents:
            try:
                current.rmdir()
            except OSError:
                break
            current = current.parent

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def is_file(self, path: Path) -> bool:
        return Path(path).is_file()

    def is_directory(self, path: Path) -> bool:
        return Path(path).is_dir()

    def list_directories(self, path: Path) -> List[str]:
        """Sorted names of the immediate subdirectories of ``path``."""
        path = Path(path)
        try:
            return sorted(p.name for p in path.iterdir() if p.is_dir())
        except (FileNotFoundError, NotADirectoryError) as e:
            raise StoreNotFound(
                f"Directory not found: {path}", path=str(path), operation="list"
            ) from e
        except OSError as e:
            raise StorageFailureError(
                f"Failed to list {path}: {e}", path=str(path), operation="list"
            ) from e

    def list_files(self, path: Path) -> List[Path]:
        """All regular files under ``path`` (recursive), excluding in-flight temp files."""
        path = Path(path)
        if not path.is_dir():
            raise StoreNotFound(
                f"Directory not found: {path}", path=str(path), operation="list"
            )
        try:
            return sorted(
                p for p in path.rglob("*")
                if p.is_file() and not p.name.startswith(TEMP_PREFIX)
            )
        except OSError as e:
            raise StorageFailureError(
                f"Failed to list {path}: {e}", path=str(path), operation="list"
            ) from e

    def __repr__(self) -> str:
        return "<BinaryStore>"
