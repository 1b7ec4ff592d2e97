"""Read-only views of a cache entry, as reported by cache administration."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class RefInfo:
    """A ref name and the commit it was last resolved to."""

    ref: str
    sha: Optional[str]
    last_accessed: Optional[int]
    last_updated: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SourceInfo:
    """A path materialized in the shared cache for one commit."""

    sha: str
    git_path: str
    # Absolute path of the shared copy
    source: str
    last_accessed: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RepoInfo:
    """Everything the cache knows about one remote."""

    base_dir: str
    remote: str
    last_accessed: Optional[int]
    refs: List[RefInfo] = field(default_factory=list)
    sources: List[SourceInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_dir": self.base_dir,
            "remote": self.remote,
            "last_accessed": self.last_accessed,
            "refs": [ref.to_dict() for ref in self.refs],
            "sources": [source.to_dict() for source in self.sources],
        }
