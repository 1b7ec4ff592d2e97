"""
Lock-guarded access to the metadata record of a remote cache entry.

All reads and writes of a cache entry (its metadata record and its local
mirror) happen inside ``repo_lock``. The lock is an exclusive OS-level
advisory lock provided by filelock, so it serializes threads of one process
as well as separate processes running the CLI at the same time. There is no
acquisition timeout: a caller waits for as long as another holder keeps the
entry locked, e.g. during a slow fetch.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from filelock import FileLock
from pydantic import ValidationError

from .errors import CorruptMetadataError
from .record import RepoRecord

logger = logging.getLogger(__name__)

LOCK_FILE_NAME = "repo.lock"
METADATA_FILE_NAME = "repo.json"


def lock_path(base_dir: Path) -> Path:
    return base_dir / LOCK_FILE_NAME


def metadata_path(base_dir: Path) -> Path:
    return base_dir / METADATA_FILE_NAME


def _read_record(base_dir: Path, remote: str, timestamp: int) -> RepoRecord:
    path = metadata_path(base_dir)
    try:
        text = path.read_text(encoding="utf-8") if path.exists() else ""
        return RepoRecord.parse(text, remote, timestamp, origin=str(path))
    except (OSError, UnicodeDecodeError) as e:
        error = CorruptMetadataError(str(path), str(e))
    except CorruptMetadataError as e:
        error = e
    # Forget what was recorded and start over
    logger.warning(f"{error}. Discarding recorded cache state.")
    return RepoRecord.fresh(remote, timestamp)


def entry_lock(base_dir: Path) -> FileLock:
    """The bare exclusive lock of a cache entry, without its metadata."""
    return FileLock(str(lock_path(base_dir)))


def read_remote(base_dir: Path) -> Optional[str]:
    """Return the remote recorded for a cache entry, or None if unreadable."""
    path = metadata_path(base_dir)
    if not path.is_file():
        return None
    with entry_lock(base_dir):
        try:
            record = RepoRecord.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            logger.debug(f"Skipping unreadable metadata {path}: {e}")
            return None
    return record.remote or None


@contextmanager
def repo_lock(base_dir: Path, remote: str, timestamp: int) -> Iterator[RepoRecord]:
    """
    Lock a cache entry and yield its metadata record.

    The record is rewritten in full when the block completes, and only if it
    was modified. Nothing is written when the block raises.

    Args:
        base_dir: The remote cache entry directory (must exist)
        remote: The remote the entry belongs to
        timestamp: Time used for every access recorded in this critical section
    """
    with entry_lock(base_dir):
        record = _read_record(base_dir, remote, timestamp)
        yield record
        if record.modified:
            with open(metadata_path(base_dir), "w", encoding="utf-8") as f:
                f.write(record.dump())
