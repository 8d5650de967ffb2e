"""Probe operations for one entry: metadata lookup and content access."""

from __future__ import annotations

import functools
import os
from typing import Protocol

from fsprobe.config.models import Isolation
from fsprobe.fs.walker import Entry
from fsprobe.probe.executor import Command, Operation


class ProbeBackend(Protocol):
    def metadata(self, entry: Entry) -> Operation: ...

    def access(self, entry: Entry) -> Operation: ...


# Entries yielded as files may be links to directories; those pass when the
# target still resolves to a directory, since reading one has no meaning.
_ACCESS_SCRIPT = 'test -d "$1" || head -c 1 "$1"'


class SubprocessBackend:
    """Probe through coreutils in a child process.

    A hung ``stat`` syscall then blocks a disposable process instead of a
    thread in this interpreter, and the process group can be killed.
    """

    def metadata(self, entry: Entry) -> Operation:
        return Command(("stat", "-L", entry.path))

    def access(self, entry: Entry) -> Operation:
        if entry.is_dir:
            return Command(("test", "-d", entry.path))
        return Command(("sh", "-c", _ACCESS_SCRIPT, "fsprobe-access", entry.path))


def stat_path(path: str) -> bool:
    os.stat(path)
    return True


def read_one_byte(path: str) -> bool:
    try:
        with open(path, "rb") as handle:
            handle.read(1)
    except IsADirectoryError:
        return os.path.isdir(path)
    return True


def is_directory(path: str) -> bool:
    return os.path.isdir(path)


class ThreadBackend:
    """Probe with in-process syscalls on dedicated threads.

    Cheaper than spawning processes, but a timed-out call leaves its thread
    blocked for as long as the kernel keeps it there.
    """

    def metadata(self, entry: Entry) -> Operation:
        return functools.partial(stat_path, entry.path)

    def access(self, entry: Entry) -> Operation:
        if entry.is_dir:
            return functools.partial(is_directory, entry.path)
        return functools.partial(read_one_byte, entry.path)


def backend_for(isolation: Isolation) -> ProbeBackend:
    if isolation == "thread":
        return ThreadBackend()
    return SubprocessBackend()
