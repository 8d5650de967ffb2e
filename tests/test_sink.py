from __future__ import annotations

import io
import os
import threading
import unittest
from pathlib import Path

from fsprobe.fs.walker import Entry, EntryKind
from fsprobe.probe.prober import Classification
from fsprobe.sink import ResultSink

ROOT = Path(os.sep, "mnt", "scratch")


def _classified(name: str, kind: EntryKind, status: str = "good", diagnostic: str | None = None) -> Classification:
    entry = Entry(path=os.path.join(ROOT, name), kind=kind)
    return Classification(entry=entry, status=status, diagnostic=diagnostic)  # type: ignore[arg-type]


class ResultSinkTests(unittest.TestCase):
    def setUp(self) -> None:
        self.good = io.StringIO()
        self.bad = io.StringIO()
        self.sink = ResultSink(self.good, self.bad, root=ROOT)

    def test_partitions_by_status(self) -> None:
        self.sink.emit(_classified("a.txt", EntryKind.FILE))
        self.sink.emit(_classified("b.txt", EntryKind.FILE, status="bad"))

        self.assertEqual(self.good.getvalue(), "a.txt\n")
        self.assertEqual(self.bad.getvalue(), "b.txt\n")

    def test_directories_get_trailing_separator(self) -> None:
        self.sink.emit(_classified("c", EntryKind.DIRECTORY))
        self.sink.emit(_classified(os.path.join("c", "d"), EntryKind.DIRECTORY, status="bad"))
        self.sink.emit(_classified("e", EntryKind.FILE))

        self.assertEqual(self.good.getvalue().splitlines(), [f"c{os.sep}", "e"])
        self.assertEqual(self.bad.getvalue(), os.path.join("c", "d") + os.sep + "\n")

    def test_bad_entries_carry_diagnostic_prefix(self) -> None:
        self.sink.emit(_classified("b.txt", EntryKind.FILE, status="bad", diagnostic="12"))
        self.assertEqual(self.bad.getvalue(), "12:b.txt\n")

    def test_good_entries_never_carry_diagnostic(self) -> None:
        self.sink.emit(_classified("a.txt", EntryKind.FILE, diagnostic="12"))
        self.assertEqual(self.good.getvalue(), "a.txt\n")

    def test_absolute_paths(self) -> None:
        sink = ResultSink(self.good, self.bad, root=ROOT, absolute=True)
        sink.emit(_classified("c", EntryKind.DIRECTORY))
        self.assertEqual(self.good.getvalue(), os.path.join(ROOT, "c") + os.sep + "\n")

    def test_undecodable_names_are_written_as_their_raw_bytes(self) -> None:
        raw = io.BytesIO()
        strict = io.TextIOWrapper(raw, encoding="utf-8", write_through=True)
        sink = ResultSink(strict, self.bad, root=ROOT)

        sink.emit(_classified("a.txt", EntryKind.FILE))
        sink.emit(_classified(os.fsdecode(b"bad\xff.dat"), EntryKind.FILE))
        sink.emit(_classified("c", EntryKind.DIRECTORY))

        self.assertEqual(raw.getvalue(), b"a.txt\nbad\xff.dat\nc" + os.fsencode(os.sep) + b"\n")

    def test_concurrent_emitters_write_whole_lines(self) -> None:
        def emit_many(worker: int) -> None:
            for index in range(200):
                status = "good" if index % 2 else "bad"
                self.sink.emit(_classified(f"w{worker}-{index}.dat", EntryKind.FILE, status=status))

        threads = [threading.Thread(target=emit_many, args=(worker,)) for worker in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        good_lines = self.good.getvalue().splitlines()
        bad_lines = self.bad.getvalue().splitlines()
        self.assertEqual(len(good_lines), 800)
        self.assertEqual(len(bad_lines), 800)
        for line in good_lines + bad_lines:
            self.assertRegex(line, r"^w\d-\d+\.dat$")


if __name__ == "__main__":
    unittest.main()
