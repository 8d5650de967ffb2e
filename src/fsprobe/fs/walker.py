"""Lazy depth-first traversal producing probe entries."""

from __future__ import annotations

import enum
import os
from collections.abc import Iterator
from dataclasses import dataclass

from fsprobe.fs.filtering import PathFilter
from fsprobe.runtime_logging import get_runtime_logger


class EntryKind(enum.Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True, slots=True)
class Entry:
    path: str
    kind: EntryKind
    listing_error: str | None = None

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


class WalkError(Exception):
    """Raised when the walk cannot start because the root is not listable."""


def _list_dir(path: str) -> list[os.DirEntry[str]]:
    with os.scandir(path) as it:
        return list(it)


def walk(root: str | os.PathLike[str], path_filter: PathFilter | None = None) -> Iterator[Entry]:
    """Yield every file and directory below ``root`` (the root itself excluded).

    Listing a directory is assumed to return promptly; only per-entry
    probes are deadline-guarded. Entry kinds come from the listing
    (``d_type``) without following symlinks, so links are yielded as files
    and never descended into. Where the filesystem reports no ``d_type``
    the kind costs an ``lstat``, which is not guarded either: if that
    hangs, the thread pulling from this generator hangs with it, and every
    worker waiting for its next entry stalls behind it.

    A subdirectory that cannot be listed is yielded with ``listing_error``
    set and the walk carries on. An unlistable root raises ``WalkError``
    before anything is yielded.
    """
    logger = get_runtime_logger()
    root_path = os.fspath(root)
    try:
        children = _list_dir(root_path)
    except OSError as exc:
        raise WalkError(f"cannot list {root_path}: {exc}") from exc

    # Each frame holds the pending children of one directory plus its
    # root-relative prefix.
    stack: list[tuple[str, Iterator[os.DirEntry[str]]]] = [("", iter(_sorted(children)))]
    while stack:
        prefix, pending = stack[-1]
        child = next(pending, None)
        if child is None:
            stack.pop()
            continue

        rel_path = prefix + child.name
        try:
            is_dir = child.is_dir(follow_symlinks=False)
        except OSError:
            is_dir = False
        if path_filter and not path_filter.include(rel_path, is_dir=is_dir):
            continue

        if not is_dir:
            yield Entry(path=child.path, kind=EntryKind.FILE)
            continue

        try:
            grandchildren = _list_dir(child.path)
        except OSError as exc:
            logger.warning("walk.list_failed", path=child.path, error=str(exc))
            yield Entry(path=child.path, kind=EntryKind.DIRECTORY, listing_error=str(exc))
            continue

        yield Entry(path=child.path, kind=EntryKind.DIRECTORY)
        stack.append((rel_path + "/", iter(_sorted(grandchildren))))


def _sorted(entries: list[os.DirEntry[str]]) -> list[os.DirEntry[str]]:
    return sorted(entries, key=lambda item: item.name)
