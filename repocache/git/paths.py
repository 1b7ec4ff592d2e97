"""Pure helpers for naming things in the git cache."""

import hashlib
import re
from typing import Optional

from .errors import InvalidPathError

# Sentinel path meaning "the whole repository"
WHOLE_REPOSITORY = "."

GIT_DIR_NAME = ".git"

_COMMIT_HASH_RE = re.compile(r"^[0-9a-f]{40}$")


def is_commit_hash(ref: str) -> bool:
    """
    Check if a reference is a full commit hash.

    Only the complete 40 character lowercase form counts: such references are
    immutable and are never re-fetched once present locally. Abbreviated hashes
    are treated like any other ref name.
    """
    return bool(_COMMIT_HASH_RE.match(ref))


def remote_dir_name(remote: str) -> str:
    """
    Map a remote identifier to the name of its cache entry directory.

    Examples:
        https://github.com/user/repo.git -> 64 hex characters, stable across runs
    """
    return hashlib.sha256(remote.encode("utf-8")).hexdigest()


def normalize_path(path: Optional[str]) -> str:
    """
    Validate and canonicalize a repository-relative path.

    Leading separators are ignored, empty and "." segments are dropped and ".."
    segments are resolved against the segments seen so far.

    Args:
        path: Path inside the repository, or None/"" for the whole repository

    Returns:
        The canonical relative path, or WHOLE_REPOSITORY

    Raises:
        InvalidPathError: If the path escapes the repository root or points
            into the .git directory
    """
    if not path:
        return WHOLE_REPOSITORY

    segments = []
    for segment in path.lstrip("/").split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not segments:
                raise InvalidPathError(path, "it leads outside the repository")
            segments.pop()
            continue
        segments.append(segment)

    if segments and segments[0] == GIT_DIR_NAME:
        raise InvalidPathError(path, "access to git metadata is not allowed")

    return "/".join(segments) if segments else WHOLE_REPOSITORY
