from __future__ import annotations

import functools
import os
import stat
import threading
import time
from pathlib import Path

from fsprobe.fs.walker import Entry, EntryKind

# Long enough to outlive any deadline used in the tests; released in tearDown.
HANG_SECONDS = 30.0


class ScriptedBackend:
    """Thread-run probes whose outcome is scripted per entry basename.

    Behaviours: ``"ok"``, ``"fail"`` (raises PermissionError), ``"hang"``
    (blocks until ``release()``), or a float number of seconds to sleep
    before succeeding.
    """

    def __init__(
        self,
        metadata: dict[str, object] | None = None,
        access: dict[str, object] | None = None,
        default: object = "ok",
    ) -> None:
        self._metadata = metadata or {}
        self._access = access or {}
        self._default = default
        self._released = threading.Event()
        self._lock = threading.Lock()
        self.calls: list[tuple[str, str]] = []
        self.active = 0
        self.peak = 0

    def metadata(self, entry: Entry):
        name = os.path.basename(entry.path)
        return functools.partial(self._run, "metadata", name, self._metadata.get(name, self._default))

    def access(self, entry: Entry):
        name = os.path.basename(entry.path)
        return functools.partial(self._run, "access", name, self._access.get(name, "ok"))

    def release(self) -> None:
        self._released.set()

    def _run(self, probe: str, name: str, behaviour: object) -> bool:
        with self._lock:
            self.calls.append((probe, name))
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            if behaviour == "fail":
                raise PermissionError(13, "Permission denied", name)
            if behaviour == "hang":
                self._released.wait(HANG_SECONDS)
            elif isinstance(behaviour, float):
                time.sleep(behaviour)
            return True
        finally:
            with self._lock:
                self.active -= 1


def file_entry(root: Path, name: str) -> Entry:
    return Entry(path=os.path.join(root, name), kind=EntryKind.FILE)


def dir_entry(root: Path, name: str) -> Entry:
    return Entry(path=os.path.join(root, name), kind=EntryKind.DIRECTORY)


def build_tree(root: Path) -> None:
    """``a.txt``, ``b.txt`` and an empty-ish directory ``c/``."""
    (root / "a.txt").write_text("alpha", encoding="utf-8")
    (root / "b.txt").write_text("bravo", encoding="utf-8")
    (root / "c").mkdir()


def write_tool(directory: Path, body: str) -> Path:
    """Write an executable shell script standing in for the stripe tool."""
    tool = directory / "fake-lfs"
    tool.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    tool.chmod(tool.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return tool
