"""Write classified entries to the good and bad output channels."""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import TextIO

from fsprobe.probe.prober import Classification


class ResultSink:
    """Line-oriented writer for the two output channels.

    Good entries are written as their path, bad entries as their path or
    ``diagnostic:path``. Directories always end with ``os.sep``. Each line
    is written and flushed under the channel's lock, so concurrent emitters
    interleave whole lines only.
    """

    def __init__(
        self,
        good: TextIO,
        bad: TextIO,
        *,
        root: Path | None = None,
        absolute: bool = False,
    ) -> None:
        self.good = good
        self.bad = bad
        self.root = os.fspath(root) if root is not None else None
        self.absolute = absolute
        self._good_lock = threading.Lock()
        self._bad_lock = threading.Lock()

    def render_path(self, classification: Classification) -> str:
        entry = classification.entry
        path = entry.path
        if self.root is not None and not self.absolute:
            path = os.path.relpath(path, self.root)
        if entry.is_dir and not path.endswith(os.sep):
            path += os.sep
        return path

    def format(self, classification: Classification) -> str:
        path = self.render_path(classification)
        if not classification.good and classification.diagnostic:
            return f"{classification.diagnostic}:{path}"
        return path

    def emit(self, classification: Classification) -> None:
        line = self.format(classification) + "\n"
        if classification.good:
            stream, lock = self.good, self._good_lock
        else:
            stream, lock = self.bad, self._bad_lock
        with lock:
            _write_line(stream, line)


def _write_line(stream: TextIO, line: str) -> None:
    """Write ``line``, restoring undecodable name bytes as the filesystem holds them."""
    try:
        stream.write(line)
    except UnicodeEncodeError:
        buffer = getattr(stream, "buffer", None)
        if buffer is None:
            stream.write(line.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace"))
        else:
            stream.flush()
            buffer.write(os.fsencode(line))
    stream.flush()
