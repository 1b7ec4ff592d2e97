"""CLI commands for git cache management"""

import sys
from typing import Optional, Tuple

import click

from repocache.cli.output import emit, format_option
from repocache.cli.utils.logging import logger
from repocache.git import ALL, CacheError, GitCache, GitCommandError

cache_dir_option = click.option(
    "--cache-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Base directory of the cache. Defaults to the standard cache directory.",
)


def _unknown_remote(remote: str):
    logger.error(f"Unknown remote: {remote}")
    sys.exit(1)


@click.group(name="cache")
def cache():
    """Manage the cache of remote git repositories.

    The cache keeps a local mirror of each remote, the refs resolved from it
    and read-only copies of the files that were requested.
    """
    pass


@cache.command("list")
@cache_dir_option
@format_option
def list_remotes(cache_dir: Optional[str], output_format: str):
    """List the git remotes present in the cache."""
    git_cache = GitCache(cache_dir=cache_dir)
    emit(
        {"cache_dir": str(git_cache.cache_dir), "remotes": git_cache.list_remotes()},
        output_format,
    )


@cache.command("show")
@click.argument("remote")
@cache_dir_option
@format_option
def show(remote: str, cache_dir: Optional[str], output_format: str):
    """Show what the cache holds for REMOTE: refs, sources and access times."""
    git_cache = GitCache(cache_dir=cache_dir)
    info = git_cache.describe(remote)
    if info is None:
        _unknown_remote(remote)
    emit(info.to_dict(), output_format)


@cache.command("get")
@click.argument("remote")
@cache_dir_option
@click.option(
    "--path",
    default=None,
    help="File or directory in the repository. Defaults to the entire repository.",
)
@click.option(
    "--commit",
    "--ref",
    "commit",
    default=None,
    help="Commit hash, branch, tag, or HEAD (the default).",
)
@click.option(
    "--into",
    type=click.Path(file_okay=False),
    default=None,
    help="Copy files into this directory instead of returning the shared copy.",
)
@click.option("--update", is_flag=True, help="Fetch refs such as branches again.")
@click.option(
    "--max-age",
    type=click.IntRange(min=0),
    default=None,
    help="Fetch refs again if the last fetch is at least this many seconds old.",
)
def get(
    remote: str,
    cache_dir: Optional[str],
    path: Optional[str],
    commit: Optional[str],
    into: Optional[str],
    update: bool,
    max_age: Optional[int],
):
    """Get files from REMOTE, loading them into the cache if necessary.

    Prints the local path of the files. Unless --into is given, the path is
    shared with other users of the cache: do not modify anything below it.

    Example:

      repocache cache get https://github.com/user/repo.git --path docs --commit main
    """
    if update and max_age is not None:
        raise click.UsageError("--update and --max-age are mutually exclusive.")

    git_cache = GitCache(cache_dir=cache_dir)
    try:
        found = git_cache.get(
            remote,
            path=path,
            commit=commit,
            into=into,
            update=max_age if max_age is not None else update,
        )
    except GitCommandError as e:
        logger.error(e.message)
        details = (e.result.stderr or e.result.stdout).strip()
        if details:
            logger.error(details)
        sys.exit(1)
    except CacheError as e:
        logger.error(e.message)
        sys.exit(1)
    click.echo(found)


@cache.command("remove")
@click.argument("remotes", nargs=-1)
@click.option("--all", "all_", is_flag=True, help="Remove all repositories.")
@cache_dir_option
@format_option
def remove(
    remotes: Tuple[str, ...], all_: bool, cache_dir: Optional[str], output_format: str
):
    """Remove repositories from the cache.

    Removes the local mirrors and all shared files of the given REMOTES, or of
    every cached repository with --all. They are loaded from scratch the next
    time they are requested.

    Files in use by other processes are removed as well.
    """
    if bool(remotes) == all_:
        raise click.UsageError(
            "Specify at least one remote to remove, or --all to remove all remotes."
        )
    git_cache = GitCache(cache_dir=cache_dir)
    removed = git_cache.remove_repos(ALL if all_ else list(remotes))
    emit({"removed": removed}, output_format)


@cache.command("remove-refs")
@click.argument("remote")
@click.option("--ref", "refs", multiple=True, help="Remove a specific ref.")
@click.option("--all", "all_", is_flag=True, help="Remove all refs.")
@cache_dir_option
@format_option
def remove_refs(
    remote: str,
    refs: Tuple[str, ...],
    all_: bool,
    cache_dir: Optional[str],
    output_format: str,
):
    """Forget the given refs of REMOTE, so they are fetched again when next used."""
    if bool(refs) == all_:
        raise click.UsageError("Specify either --ref at least once, or --all.")
    git_cache = GitCache(cache_dir=cache_dir)
    removed = git_cache.remove_refs(remote, ALL if all_ else list(refs))
    if removed is None:
        _unknown_remote(remote)
    emit(
        {"remote": remote, "removed_refs": [ref.to_dict() for ref in removed]},
        output_format,
    )


@cache.command("remove-sources")
@click.argument("remote")
@click.option(
    "--commit", "commits", multiple=True, help="Remove sources of a specific commit."
)
@click.option("--all", "all_", is_flag=True, help="Remove all sources.")
@click.option(
    "--path", "paths", multiple=True, help="Only remove this repository path."
)
@cache_dir_option
@format_option
def remove_sources(
    remote: str,
    commits: Tuple[str, ...],
    all_: bool,
    paths: Tuple[str, ...],
    cache_dir: Optional[str],
    output_format: str,
):
    """Remove shared files of REMOTE from the cache.

    They are copied again from the repository the next time they are requested.
    """
    if bool(commits) == all_:
        raise click.UsageError("Specify either --commit at least once, or --all.")
    git_cache = GitCache(cache_dir=cache_dir)
    try:
        removed = git_cache.remove_sources(
            remote, ALL if all_ else list(commits), paths=list(paths) or None
        )
    except CacheError as e:
        logger.error(e.message)
        sys.exit(1)
    if removed is None:
        _unknown_remote(remote)
    emit(
        {"remote": remote, "removed_sources": [s.to_dict() for s in removed]},
        output_format,
    )
