"""
Cached access to files in remote git repositories.

Given a remote, a path inside it and a commit reference, ``GitCache.get``
returns a local path holding that content. Remote data is fetched only when
needed, and materialized content is shared between repeated requests, even
when they come from separate processes running at the same time.

Cache Structure:
    ~/.cache/repocache/git/
    ├── 3f1c...e9/                  # sha256 of the remote string
    │   ├── repo.lock               # exclusive lock of this entry
    │   ├── repo.json               # metadata record (refs, sources, times)
    │   ├── repo/                   # local mirror, origin = the remote
    │   ├── 5e0b...41/              # shared content of one commit (read-only)
    │   └── a812...07/
    └── 9d44...c2/

Concurrency:
    Every operation on an entry, administration included, runs while holding
    the entry's exclusive file lock. Two entries never contend; two requests
    against the same remote are serialized, for however long a fetch takes.
    Shared content is immutable once created and is read without locking.

    Removal is not reference counted: removing repos or sources may delete
    files another process is still reading.

Usage:
    cache = GitCache()

    # Shared, read-only copy of one directory on the main branch
    path = cache.get("https://github.com/user/repo.git", path="docs", commit="main")

    # Writable copy of the whole repository at a tag
    path = cache.get("https://github.com/user/repo.git", commit="v1.0", into="work")

    # Re-fetch "main" if it was fetched more than an hour ago
    path = cache.get("https://github.com/user/repo.git", commit="main", update=3600)
"""

import logging
import time
import uuid
from pathlib import Path
from typing import Iterable, List, Optional, Union

from repocache.config import get_git_cache_dir

from .fs import force_rmtree
from .info import RefInfo, RepoInfo, SourceInfo
from .lock import entry_lock, metadata_path, read_remote, repo_lock
from .materialize import content_dir, copy_into, ensure_shared_source, source_path
from .mirror import ensure_mirror, mirror_dir
from .paths import normalize_path, remote_dir_name
from .record import RepoRecord, UpdatePolicy
from .refs import resolve_commit
from .runner import CommandRunner, GitPythonRunner

logger = logging.getLogger(__name__)


class _AllType:
    def __repr__(self) -> str:
        return "ALL"


# Selects every remote, ref or commit in administration operations
ALL = _AllType()


def _as_list(value: Union[str, Iterable[str]]) -> List[str]:
    return [value] if isinstance(value, str) else list(value)


class GitCache:
    """
    A cache of files from remote git repositories.

    Args:
        cache_dir: Base cache directory (defaults to the configured git cache dir)
        runner: Runs external git commands (defaults to GitPythonRunner)
    """

    def __init__(
        self,
        cache_dir: Optional[Union[str, Path]] = None,
        runner: Optional[CommandRunner] = None,
    ):
        if cache_dir is None:
            cache_dir = get_git_cache_dir()
        self._cache_dir = Path(cache_dir).expanduser().absolute()
        self._runner = runner if runner is not None else GitPythonRunner()

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def base_dir_for(self, remote: str) -> Path:
        return self._cache_dir / remote_dir_name(remote)

    def repo_dir_for(self, remote: str) -> Path:
        """Path of the local mirror of ``remote``."""
        return mirror_dir(self.base_dir_for(remote))

    def get(
        self,
        remote: str,
        path: Optional[str] = None,
        commit: Optional[str] = None,
        into: Optional[Union[str, Path]] = None,
        update: UpdatePolicy = False,
        timestamp: Optional[int] = None,
    ) -> str:
        """
        Get files from the cache, loading them from the remote if necessary.

        Args:
            remote: URL or path of the git repository
            path: File or directory inside the repository (defaults to all of it)
            commit: Commit hash, branch, tag or HEAD (the default)
            into: Copy into this caller-owned directory instead of returning
                the shared, read-only copy. Its existing contents are removed.
            update: Whether to re-fetch mutable refs that were fetched before:
                True, False, or the minimum age in seconds of the last fetch
            timestamp: Time recorded for this access (defaults to now)

        Returns:
            Local path of the requested content

        Raises:
            InvalidPathError: If ``path`` leaves the repository or targets .git
            GitCommandError: If a git command fails
        """
        git_path = normalize_path(path)
        commit = commit or "HEAD"
        if timestamp is None:
            timestamp = int(time.time())

        base_dir = self.base_dir_for(remote)
        base_dir.mkdir(parents=True, exist_ok=True)

        with repo_lock(base_dir, remote, timestamp) as record:
            if into is None:
                shared = self._find_shared(base_dir, record, commit, git_path, update)
                if shared is not None:
                    return str(shared)

            repo_dir = ensure_mirror(self._runner, base_dir, remote)
            sha = resolve_commit(self._runner, repo_dir, commit, record, update)
            if into is None:
                found = ensure_shared_source(
                    self._runner, repo_dir, base_dir, sha, git_path, record
                )
            else:
                found = copy_into(self._runner, repo_dir, sha, git_path, into)
                record.access_repo()
            return str(found)

    def _find_shared(
        self,
        base_dir: Path,
        record: RepoRecord,
        commit: str,
        git_path: str,
        update: UpdatePolicy,
    ) -> Optional[Path]:
        """Serve an already materialized source without running git."""
        sha = record.cached_sha(commit, update)
        if sha is None or not record.source_exists(sha, git_path):
            return None
        target = source_path(base_dir, sha, git_path)
        if not target.exists():
            return None
        logger.debug(f"Reusing shared copy of {git_path} at {sha[:7]}")
        record.access_ref(commit, sha)
        record.access_source(sha, git_path)
        return target

    # administration

    def list_remotes(self) -> List[str]:
        """Return the remotes present in the cache, sorted."""
        if not self._cache_dir.is_dir():
            return []
        remotes = []
        for entry in self._cache_dir.iterdir():
            if not entry.is_dir():
                continue
            remote = read_remote(entry)
            if remote is not None and entry.name == remote_dir_name(remote):
                remotes.append(remote)
        return sorted(remotes)

    def describe(self, remote: str) -> Optional[RepoInfo]:
        """Return what the cache knows about ``remote``, or None if it is not cached."""
        base_dir = self.base_dir_for(remote)
        if not metadata_path(base_dir).is_file():
            return None
        with repo_lock(base_dir, remote, int(time.time())) as record:
            return self._repo_info(base_dir, record)

    def remove_repos(self, remotes: Union[str, Iterable[str], _AllType]) -> List[str]:
        """
        Remove whole cache entries: local mirrors, metadata and shared content.

        Returns:
            The remotes that were actually removed, sorted
        """
        if remotes is ALL:
            remotes = self.list_remotes()
        removed = []
        for remote in _as_list(remotes):
            base_dir = self.base_dir_for(remote)
            if not base_dir.is_dir():
                continue
            # The lock file lives inside the entry: move the entry away while
            # locked, so waiters start over on a new lock file.
            tombstone = base_dir.with_name(f".{base_dir.name}.{uuid.uuid4().hex}")
            with entry_lock(base_dir):
                logger.info(f"Removing cached repository {remote}")
                base_dir.rename(tombstone)
            force_rmtree(tombstone)
            removed.append(remote)
        return sorted(removed)

    def remove_refs(
        self, remote: str, refs: Union[str, Iterable[str], _AllType] = ALL
    ) -> Optional[List[RefInfo]]:
        """
        Forget resolved refs, so the next request for them fetches again.

        The local mirror and shared content are not touched.

        Returns:
            The removed refs, or None if the remote is not cached
        """
        base_dir = self.base_dir_for(remote)
        if not metadata_path(base_dir).is_file():
            return None
        with repo_lock(base_dir, remote, int(time.time())) as record:
            names = sorted(record.refs) if refs is ALL else sorted(set(_as_list(refs)))
            removed = []
            for name in names:
                entry = record.delete_ref(name)
                if entry is not None:
                    removed.append(
                        RefInfo(
                            name, entry.sha, entry.last_accessed, entry.last_updated
                        )
                    )
            return removed

    def remove_sources(
        self,
        remote: str,
        commits: Union[str, Iterable[str], _AllType] = ALL,
        paths: Optional[Iterable[str]] = None,
    ) -> Optional[List[SourceInfo]]:
        """
        Remove shared content from the cache.

        Args:
            remote: The cached remote
            commits: Commit hashes, or refs known to the cache, whose sources
                are removed
            paths: Only remove these repository paths (defaults to all paths)

        A commit's content directory is deleted once no source of that commit
        is left.

        Returns:
            The removed sources, or None if the remote is not cached
        """
        base_dir = self.base_dir_for(remote)
        if not metadata_path(base_dir).is_file():
            return None
        selected_paths = None
        if paths is not None:
            selected_paths = {normalize_path(p) for p in _as_list(paths)}

        with repo_lock(base_dir, remote, int(time.time())) as record:
            if commits is ALL:
                shas = set(record.sources)
            else:
                shas = set()
                for commit in _as_list(commits):
                    ref_entry = record.refs.get(commit)
                    sha = ref_entry.sha if ref_entry and ref_entry.sha else commit
                    if sha in record.sources:
                        shas.add(sha)

            removed = []
            for sha in sorted(shas):
                for git_path in sorted(record.sources[sha]):
                    if selected_paths is not None and git_path not in selected_paths:
                        continue
                    entry = record.delete_source(sha, git_path)
                    removed.append(
                        SourceInfo(
                            sha,
                            git_path,
                            str(source_path(base_dir, sha, git_path)),
                            entry.last_accessed if entry else None,
                        )
                    )
                if sha not in record.sources:
                    logger.info(f"Removing shared content of {sha[:7]} for {remote}")
                    force_rmtree(content_dir(base_dir, sha))
            return removed

    def _repo_info(self, base_dir: Path, record: RepoRecord) -> RepoInfo:
        refs = [
            RefInfo(name, entry.sha, entry.last_accessed, entry.last_updated)
            for name, entry in sorted(record.refs.items())
        ]
        sources = [
            SourceInfo(
                sha,
                git_path,
                str(source_path(base_dir, sha, git_path)),
                entry.last_accessed,
            )
            for sha, git_path, entry in record.iter_sources()
        ]
        return RepoInfo(
            base_dir=str(base_dir),
            remote=record.remote,
            last_accessed=record.accessed,
            refs=refs,
            sources=sources,
        )
