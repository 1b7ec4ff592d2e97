"""repocache: cached, concurrency-safe access to files in remote git repositories."""

__version__ = "0.1.0"
