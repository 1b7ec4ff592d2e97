"""
External command execution for the git cache.

The cache only needs one capability from its environment: run a command in a
working directory and report its exit status together with the captured
output. ``GitPythonRunner`` provides it on top of GitPython's command
executor; tests inject their own ``CommandRunner``.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Union

from .errors import GitCommandError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of one external command."""

    command: List[str] = field(default_factory=list)
    # None when the command could not be started at all
    exit_status: Optional[int] = None
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.exit_status == 0

    @property
    def failed(self) -> bool:
        """True if the command could not be spawned."""
        return self.exit_status is None

    @property
    def error(self) -> bool:
        """True if the command ran but exited with a nonzero status."""
        return self.exit_status is not None and self.exit_status != 0


class CommandRunner(Protocol):
    def run(
        self, command: List[str], working_directory: Union[str, Path]
    ) -> CommandResult: ...


class GitPythonRunner:
    """Run commands through GitPython's ``Git.execute``."""

    def run(
        self, command: List[str], working_directory: Union[str, Path]
    ) -> CommandResult:
        # Imported lazily: GitPython looks for a git executable on import
        from git.cmd import Git
        from git.exc import GitCommandNotFound

        logger.debug(f"Running {' '.join(command)} in {working_directory}")
        try:
            status, stdout, stderr = Git(str(working_directory)).execute(
                command,
                with_extended_output=True,
                with_exceptions=False,
                strip_newline_in_stdout=False,
            )
        except (GitCommandNotFound, OSError) as e:
            logger.debug(f"Could not start {command[0]}: {e}")
            return CommandResult(command=list(command), stderr=str(e))

        logger.debug(f"{command[0]} exited with status {status}")
        return CommandResult(
            command=list(command),
            exit_status=status,
            stdout=stdout,
            stderr=stderr,
        )


def run_git(
    runner: CommandRunner,
    repo_dir: Union[str, Path],
    args: List[str],
    error_message: Optional[str] = None,
) -> CommandResult:
    """
    Run a git subcommand in ``repo_dir``.

    A git executable that cannot be started is always an error. A nonzero exit
    status is an error only when ``error_message`` is given; otherwise the
    caller inspects the result.

    Raises:
        GitCommandError: carrying the command result
    """
    result = runner.run(["git"] + args, repo_dir)
    if result.failed:
        raise GitCommandError("Could not run git command line", result)
    if result.error and error_message:
        raise GitCommandError(error_message, result)
    return result
