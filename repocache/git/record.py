"""
Persisted metadata of one remote cache entry.

The record is a small JSON document validated through a fixed pydantic
schema. It is only ever read and written while the entry's lock is held
(see ``repocache.git.lock``); every mutation marks the record as modified so
that it is rewritten when the lock is released.
"""

from typing import Dict, Iterator, Optional, Tuple, Union

from pydantic import BaseModel, Field, PrivateAttr, ValidationError

from .errors import CorruptMetadataError
from .paths import is_commit_hash

# An update directive: always (True), never (False), or "if older than N seconds"
UpdatePolicy = Union[bool, int]


class RefEntry(BaseModel):
    """Resolution state of a ref name such as a branch, a tag or HEAD."""

    sha: Optional[str] = None
    last_accessed: Optional[int] = None
    # Time of the last fetch of this ref from the remote
    last_updated: Optional[int] = None


class SourceEntry(BaseModel):
    last_accessed: Optional[int] = None


class RepoRecord(BaseModel):
    """Metadata record of a remote cache entry."""

    remote: str = ""
    refs: Dict[str, RefEntry] = Field(default_factory=dict)
    # commit sha -> repository path -> entry
    sources: Dict[str, Dict[str, SourceEntry]] = Field(default_factory=dict)
    # Time of the last repo-level access
    accessed: Optional[int] = None

    _timestamp: int = PrivateAttr(default=0)
    _modified: bool = PrivateAttr(default=False)

    @classmethod
    def fresh(cls, remote: str, timestamp: int) -> "RepoRecord":
        record = cls(remote=remote)
        record._timestamp = timestamp
        return record

    @classmethod
    def parse(
        cls, text: str, remote: str, timestamp: int, origin: str = "<metadata>"
    ) -> "RepoRecord":
        """
        Build a record from its serialized form.

        Empty content yields a fresh record for ``remote``.

        Raises:
            CorruptMetadataError: If the content is not a valid record, or
                belongs to a different remote
        """
        if not text.strip():
            return cls.fresh(remote, timestamp)
        try:
            record = cls.model_validate_json(text)
        except ValidationError as e:
            raise CorruptMetadataError(origin, f"{e.error_count()} invalid fields")
        if record.remote and record.remote != remote:
            raise CorruptMetadataError(origin, f"recorded for remote '{record.remote}'")
        record.remote = remote
        record._timestamp = timestamp
        return record

    def dump(self) -> str:
        return self.model_dump_json(indent=2)

    @property
    def timestamp(self) -> int:
        return self._timestamp

    @property
    def modified(self) -> bool:
        return self._modified

    # refs

    def ref_stale(self, ref: str, policy: UpdatePolicy) -> bool:
        """
        Decide whether a ref must be fetched again before use.

        A ref that was never fetched is always stale. Otherwise ``True`` means
        always stale, ``False`` never stale, and an integer N means stale once
        at least N seconds have passed since the last fetch.
        """
        entry = self.refs.get(ref)
        if entry is None or entry.last_updated is None:
            return True
        if isinstance(policy, bool):
            return policy
        return self._timestamp >= entry.last_updated + policy

    def cached_sha(self, commit: str, policy: UpdatePolicy) -> Optional[str]:
        """Return the sha for ``commit`` if it can be used without git."""
        if is_commit_hash(commit):
            return commit
        if self.ref_stale(commit, policy):
            return None
        return self.refs[commit].sha

    def update_ref(self, ref: str) -> None:
        self.refs.setdefault(ref, RefEntry()).last_updated = self._timestamp
        self._modified = True

    def access_ref(self, ref: str, sha: str) -> None:
        entry = self.refs.setdefault(ref, RefEntry())
        entry.sha = sha
        entry.last_accessed = self._timestamp
        self._modified = True

    def delete_ref(self, ref: str) -> Optional[RefEntry]:
        entry = self.refs.pop(ref, None)
        if entry is not None:
            self._modified = True
        return entry

    # sources

    def source_exists(self, sha: str, path: str) -> bool:
        return path in self.sources.get(sha, {})

    def access_source(self, sha: str, path: str) -> None:
        paths = self.sources.setdefault(sha, {})
        paths.setdefault(path, SourceEntry()).last_accessed = self._timestamp
        self._modified = True

    def delete_source(self, sha: str, path: str) -> Optional[SourceEntry]:
        """Remove one source entry, dropping the sha once it has none left."""
        paths = self.sources.get(sha)
        if not paths or path not in paths:
            return None
        entry = paths.pop(path)
        if not paths:
            del self.sources[sha]
        self._modified = True
        return entry

    def iter_sources(self) -> Iterator[Tuple[str, str, SourceEntry]]:
        for sha in sorted(self.sources):
            for path in sorted(self.sources[sha]):
                yield sha, path, self.sources[sha][path]

    # repo

    def access_repo(self) -> None:
        self.accessed = self._timestamp
        self._modified = True
