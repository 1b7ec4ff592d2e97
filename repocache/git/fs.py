"""Filesystem helpers for shared (read-only) and private cache content."""

import os
import shutil
import stat
from pathlib import Path

_WRITE_BITS = stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH


def make_read_only(path: Path) -> None:
    """Clear all write bits below and including ``path``. Symlinks are left alone."""
    if path.is_symlink():
        return
    if path.is_dir():
        for root, dirs, files in os.walk(path, topdown=False):
            for name in files + dirs:
                child = os.path.join(root, name)
                if not os.path.islink(child):
                    mode = stat.S_IMODE(os.lstat(child).st_mode)
                    os.chmod(child, mode & ~_WRITE_BITS)
    os.chmod(path, stat.S_IMODE(os.lstat(path).st_mode) & ~_WRITE_BITS)


def make_dirs_writable(path: Path) -> None:
    """Restore the owner write bit on ``path`` and every directory below it."""
    if path.is_symlink() or not path.is_dir():
        return
    for root, dirs, _ in os.walk(path):
        os.chmod(root, stat.S_IMODE(os.lstat(root).st_mode) | stat.S_IWUSR)
        for name in dirs:
            child = os.path.join(root, name)
            if not os.path.islink(child):
                os.chmod(child, stat.S_IMODE(os.lstat(child).st_mode) | stat.S_IWUSR)


def force_rmtree(path: Path) -> None:
    """Delete a file or directory tree, including read-only content."""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        make_dirs_writable(path)
        shutil.rmtree(path)


def copy_missing(src: Path, dst: Path) -> None:
    """
    Copy ``src`` to ``dst``, merging into existing directories.

    Entries that already exist at the destination are kept as they are, so
    repeating a copy never overwrites anything.
    """
    if src.is_dir() and not src.is_symlink():
        dst.mkdir(parents=True, exist_ok=True)
        for child in src.iterdir():
            copy_missing(child, dst / child.name)
        return
    if dst.exists() or dst.is_symlink():
        return
    dst.parent.mkdir(parents=True, exist_ok=True)
    if src.is_symlink():
        os.symlink(os.readlink(src), dst)
    else:
        shutil.copy2(src, dst)
