import hashlib
import io
import logging
import shutil
import subprocess

import pytest

from pathlib import Path
from typing import Dict, List, Optional, Set

from repocache.git import CommandResult, GitCache


@pytest.fixture
def capture_logs():
    """Fixture to capture log output during tests."""
    log_stream = io.StringIO()
    handler = logging.StreamHandler(log_stream)
    logger = logging.getLogger("repocache")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    yield log_stream  # Yield the stream to the test function

    # Cleanup after the test
    logger.removeHandler(handler)
    log_stream.close()


# fake git


class MirrorState:
    def __init__(self):
        self.origin: Optional[str] = None
        self.objects: Set[str] = set()
        self.refs: Dict[str, str] = {}


class FakeGit:
    """
    In-memory stand-in for the git executable.

    Holds a fake remote (refs and commit contents) and the state of every
    mirror it was asked to initialize, keyed by working directory. Every
    command is recorded in ``calls``.
    """

    def __init__(self):
        self.remote_refs: Dict[str, str] = {}
        self.commits: Dict[str, Dict[str, str]] = {}
        self.mirrors: Dict[str, MirrorState] = {}
        self.calls: List[List[str]] = []
        self.available = True
        self._counter = 0

    # remote side

    def commit(self, files: Dict[str, str], ref: str = "HEAD") -> str:
        self._counter += 1
        sha = hashlib.sha1(f"commit-{self._counter}".encode()).hexdigest()
        self.commits[sha] = dict(files)
        self.remote_refs[ref] = sha
        return sha

    # observations

    def count(self, subcommand: str) -> int:
        return sum(1 for call in self.calls if call[1] == subcommand)

    # CommandRunner

    def run(self, command, working_directory) -> CommandResult:
        self.calls.append(list(command))
        if not self.available:
            return CommandResult(command=list(command), stderr="git: not found")
        cwd = str(working_directory)
        args = command[1:]
        state = self.mirrors.get(cwd)
        if state is not None and not (Path(cwd) / ".git").is_dir():
            # The mirror was deleted from disk
            state = None

        if args == ["remote", "get-url", "origin"]:
            if state is None or state.origin is None:
                return self._result(command, 2, err="error: No such remote 'origin'")
            return self._result(command, 0, out=state.origin + "\n")
        if args == ["init"]:
            self.mirrors[cwd] = MirrorState()
            (Path(cwd) / ".git").mkdir(exist_ok=True)
            return self._result(command, 0)
        if args[:3] == ["remote", "add", "origin"]:
            state.origin = args[3]
            return self._result(command, 0)
        if args[:2] == ["cat-file", "-t"]:
            sha = self._resolve(state, args[2])
            if sha is None:
                return self._result(command, 128, err="fatal: Not a valid object name")
            return self._result(command, 0, out="commit\n")
        if args[0] == "fetch":
            src, dst = args[-1].split(":", 1)
            sha = self.remote_refs.get(src) or (src if src in self.commits else None)
            if state.origin is None or sha is None:
                err = f"fatal: couldn't find remote ref {src}"
                return self._result(command, 128, err=err)
            state.objects.add(sha)
            state.refs[dst] = sha
            return self._result(command, 0)
        if args[0] == "rev-parse":
            sha = self._resolve(state, args[1])
            if sha is None:
                return self._result(command, 128, err="fatal: ambiguous argument")
            return self._result(command, 0, out=sha + "\n")
        if args[0] == "checkout":
            sha = args[-1]
            if sha not in state.objects:
                err = f"error: pathspec '{sha}' did not match"
                return self._result(command, 1, err=err)
            self._write_tree(Path(cwd), self.commits[sha])
            return self._result(command, 0)
        raise AssertionError(f"Unexpected git command: {command}")

    def _resolve(self, state: MirrorState, spec: str) -> Optional[str]:
        name = spec[: -len("^{commit}")] if spec.endswith("^{commit}") else spec
        sha = state.refs.get(name, name)
        return sha if sha in state.objects else None

    def _write_tree(self, root: Path, files: Dict[str, str]):
        for child in root.iterdir():
            if child.name == ".git":
                continue
            if child.is_dir():
                shutil.rmtree(child)
            else:
                child.unlink()
        for name, content in files.items():
            path = root / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)

    @staticmethod
    def _result(command, status: int, out: str = "", err: str = "") -> CommandResult:
        return CommandResult(
            command=list(command), exit_status=status, stdout=out, stderr=err
        )


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def cache_dir(tmp_path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def fake_cache(cache_dir, fake_git) -> GitCache:
    return GitCache(cache_dir=cache_dir, runner=fake_git)


# real git


class LocalGitRepo:
    """Helper class to build a local git repository serving as a remote."""

    def __init__(self, path: Path):
        self.path = path
        self.path.mkdir(parents=True, exist_ok=True)
        self.git("init")

    @property
    def remote(self) -> str:
        return str(self.path)

    def git(self, *args: str) -> str:
        result = subprocess.run(
            ["git", "-c", "user.name=Test", "-c", "user.email=test@test"] + list(args),
            cwd=self.path,
            check=True,
            capture_output=True,
            text=True,
        )
        return result.stdout

    def commit_file(self, name: str, content: Optional[str] = None) -> str:
        path = self.path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text((content or name) + "\n")
        self.git("add", name)
        self.git("commit", "-m", f"Add file {name}")
        return self.head_sha()

    def create_branch(self, name: str):
        self.git("branch", name)

    def head_sha(self) -> str:
        return self.git("rev-parse", "HEAD").strip()


@pytest.fixture
def local_repo(tmp_path) -> LocalGitRepo:
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    return LocalGitRepo(tmp_path / "remote_repo")
