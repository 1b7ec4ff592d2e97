"""
Materialization of repository content out of the local mirror.

Shared content lives in one directory per commit inside the cache entry:

    {base_dir}/
        repo/                   # local mirror
        {sha}/                  # content directory, read-only
            dir/file.txt        # every path requested for this sha

A path is copied into its content directory once and is never touched again
afterwards, so any number of readers can use it without locking. Callers
that need to modify files ask for a private copy instead.
"""

import logging
from pathlib import Path
from typing import Union

from .errors import InvalidPathError
from .fs import copy_missing, force_rmtree, make_dirs_writable, make_read_only
from .paths import GIT_DIR_NAME, WHOLE_REPOSITORY
from .record import RepoRecord
from .runner import CommandRunner, run_git

logger = logging.getLogger(__name__)


def content_dir(base_dir: Path, sha: str) -> Path:
    return base_dir / sha


def source_path(base_dir: Path, sha: str, path: str) -> Path:
    """Location of the shared copy of ``path`` at commit ``sha``."""
    if path == WHOLE_REPOSITORY:
        return content_dir(base_dir, sha)
    return content_dir(base_dir, sha) / path


def checkout(runner: CommandRunner, repo_dir: Path, sha: str) -> None:
    run_git(
        runner,
        repo_dir,
        ["checkout", "--force", "--detach", sha],
        error_message=f"Unable to check out commit: {sha}",
    )


def _copy_path(repo_dir: Path, path: str, dest_root: Path) -> None:
    if path == WHOLE_REPOSITORY:
        dest_root.mkdir(parents=True, exist_ok=True)
        for child in repo_dir.iterdir():
            if child.name != GIT_DIR_NAME:
                copy_missing(child, dest_root / child.name)
        return
    copy_missing(repo_dir / path, dest_root / path)


def _check_path_exists(repo_dir: Path, sha: str, path: str) -> None:
    if path == WHOLE_REPOSITORY:
        return
    src = repo_dir / path
    if not (src.exists() or src.is_symlink()):
        raise InvalidPathError(path, f"it does not exist at commit {sha}")
    # Committed symlinks may point anywhere. A symlink as the last component
    # is copied as a link, so only its parent has to stay in the checkout.
    try:
        src.parent.resolve().relative_to(repo_dir.resolve())
    except ValueError:
        raise InvalidPathError(path, "it leads outside the repository")


def ensure_shared_source(
    runner: CommandRunner,
    repo_dir: Path,
    base_dir: Path,
    sha: str,
    path: str,
    record: RepoRecord,
) -> Path:
    """
    Return the shared, read-only copy of ``path`` at ``sha``, creating it if needed.

    Raises:
        GitCommandError: If the checkout fails
        InvalidPathError: If the path does not exist at that commit
    """
    target = source_path(base_dir, sha, path)
    if not (record.source_exists(sha, path) and target.exists()):
        checkout(runner, repo_dir, sha)
        _check_path_exists(repo_dir, sha, path)

        sha_dir = content_dir(base_dir, sha)
        sha_dir.mkdir(exist_ok=True)
        logger.info(f"Copying {path} at {sha[:7]} into shared cache {sha_dir}")
        # Sibling paths of the same sha share directories
        make_dirs_writable(sha_dir)
        try:
            _copy_path(repo_dir, path, sha_dir)
        finally:
            make_read_only(sha_dir)

    record.access_source(sha, path)
    return target


def copy_into(
    runner: CommandRunner,
    repo_dir: Path,
    sha: str,
    path: str,
    into: Union[str, Path],
) -> Path:
    """
    Copy ``path`` at ``sha`` into a caller-owned directory.

    The existing contents of ``into`` are removed first. The copy keeps the
    repository layout, so ``dir/file.txt`` ends up at ``into/dir/file.txt``.

    Returns:
        Path to the copied content (``into`` itself for the whole repository)
    """
    into = Path(into).absolute()
    checkout(runner, repo_dir, sha)
    _check_path_exists(repo_dir, sha, path)

    if into.is_dir():
        make_dirs_writable(into)
        for child in into.iterdir():
            force_rmtree(child)
    into.mkdir(parents=True, exist_ok=True)

    logger.info(f"Copying {path} at {sha[:7]} into {into}")
    _copy_path(repo_dir, path, into)
    return into if path == WHOLE_REPOSITORY else into / path
