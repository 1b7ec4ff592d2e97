"""
Git cache module for repocache.

This module provides on-demand, deduplicated and concurrency-safe access to
files and directories of remote git repositories.

Architecture:
    - paths: validation of repository paths, naming of cache entries
    - lock / record: the per-remote metadata record and its file lock
    - mirror: the local mirror repository of each remote
    - refs: resolution of commit references, shallow fetches
    - materialize: shared read-only copies and private copies
    - cache: the GitCache facade, including cache administration
"""

from .cache import ALL, GitCache
from .errors import (
    CacheError,
    CorruptMetadataError,
    ErrorKind,
    GitCommandError,
    InvalidPathError,
)
from .info import RefInfo, RepoInfo, SourceInfo
from .paths import WHOLE_REPOSITORY, is_commit_hash, normalize_path, remote_dir_name
from .runner import CommandResult, CommandRunner, GitPythonRunner

__all__ = [
    "ALL",
    "GitCache",
    # errors
    "CacheError",
    "CorruptMetadataError",
    "ErrorKind",
    "GitCommandError",
    "InvalidPathError",
    # administration results
    "RefInfo",
    "RepoInfo",
    "SourceInfo",
    # helpers
    "WHOLE_REPOSITORY",
    "is_commit_hash",
    "normalize_path",
    "remote_dir_name",
    # command execution
    "CommandResult",
    "CommandRunner",
    "GitPythonRunner",
]
