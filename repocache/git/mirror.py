import logging
from pathlib import Path

from .fs import force_rmtree
from .runner import CommandRunner, run_git

logger = logging.getLogger(__name__)

MIRROR_DIR_NAME = "repo"


def mirror_dir(base_dir: Path) -> Path:
    return base_dir / MIRROR_DIR_NAME


def ensure_mirror(runner: CommandRunner, base_dir: Path, remote: str) -> Path:
    """
    Make sure the cache entry has a local mirror whose origin is ``remote``.

    A mirror with any other origin (or a directory that is no repository at
    all) is deleted and initialized again.

    Args:
        runner: Runs the git commands
        base_dir: The remote cache entry directory
        remote: The remote the entry belongs to

    Returns:
        Path to the local mirror

    Raises:
        GitCommandError: If git cannot be run or the mirror cannot be initialized
    """
    repo_dir = mirror_dir(base_dir)
    repo_dir.mkdir(parents=True, exist_ok=True)

    result = run_git(runner, repo_dir, ["remote", "get-url", "origin"])
    origin = result.stdout.strip()
    if result.success and origin == remote:
        return repo_dir

    if result.success:
        logger.warning(
            f"Local mirror at {repo_dir} points at {origin}, not {remote}. Re-creating."
        )
    else:
        logger.info(f"Creating local mirror of {remote} at {repo_dir}")

    force_rmtree(repo_dir)
    repo_dir.mkdir(parents=True)
    run_git(
        runner, repo_dir, ["init"], error_message="Unable to initialize git repository"
    )
    run_git(
        runner,
        repo_dir,
        ["remote", "add", "origin", remote],
        error_message="Unable to add git remote",
    )
    return repo_dir
