"""
Resolution of commit references to commit hashes.

Full commit hashes are immutable: once the commit is present in the local
mirror it is never fetched again. Any other reference (branch, tag, HEAD) is
mutable and is fetched shallowly into a private tracking ref under
``refs/repocache/`` whenever the update policy says it is stale.
"""

import logging
from pathlib import Path

from .paths import is_commit_hash
from .record import RepoRecord, UpdatePolicy
from .runner import CommandRunner, run_git

logger = logging.getLogger(__name__)

TRACKING_REF_PREFIX = "refs/repocache/"


def tracking_ref(commit: str) -> str:
    return f"{TRACKING_REF_PREFIX}{commit}"


def commit_exists(runner: CommandRunner, repo_dir: Path, ref: str) -> bool:
    """Check, without fetching, whether ``ref`` names a commit in the mirror."""
    result = run_git(runner, repo_dir, ["cat-file", "-t", f"{ref}^{{commit}}"])
    return result.success and result.stdout.strip() == "commit"


def fetch_commit(runner: CommandRunner, repo_dir: Path, commit: str) -> None:
    logger.info(f"Fetching {commit} from origin")
    run_git(
        runner,
        repo_dir,
        ["fetch", "--depth=1", "--force", "origin", f"{commit}:{tracking_ref(commit)}"],
        error_message=f"Unable to fetch commit: {commit}",
    )


def resolve_commit(
    runner: CommandRunner,
    repo_dir: Path,
    commit: str,
    record: RepoRecord,
    update: UpdatePolicy = False,
) -> str:
    """
    Resolve ``commit`` to a commit hash present in the local mirror.

    Args:
        runner: Runs the git commands
        repo_dir: The local mirror
        commit: A full commit hash, or a branch, tag or HEAD
        record: The locked metadata record of the cache entry
        update: Update policy for mutable references

    Returns:
        The 40 character commit hash

    Raises:
        GitCommandError: If the fetch or the resolution fails
    """
    if is_commit_hash(commit):
        if not commit_exists(runner, repo_dir, commit):
            fetch_commit(runner, repo_dir, commit)
            record.update_ref(commit)
        record.access_ref(commit, commit)
        return commit

    local_ref = tracking_ref(commit)
    if record.ref_stale(commit, update) or not commit_exists(
        runner, repo_dir, local_ref
    ):
        fetch_commit(runner, repo_dir, commit)
        record.update_ref(commit)

    result = run_git(
        runner,
        repo_dir,
        ["rev-parse", f"{local_ref}^{{commit}}"],
        error_message=f"Unable to retrieve commit: {commit}",
    )
    sha = result.stdout.strip()
    logger.debug(f"Resolved {commit} to {sha}")
    record.access_ref(commit, sha)
    return sha
