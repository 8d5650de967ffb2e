from __future__ import annotations

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from fsprobe.runtime_logging import configure_runtime_logging, get_runtime_logger, parse_level


class RuntimeLoggingTests(unittest.TestCase):
    def tearDown(self) -> None:
        configure_runtime_logging(level="off")

    def test_writes_jsonl_and_filters_by_level(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "runtime.jsonl"
            logger = configure_runtime_logging(level="info", log_file=path)
            logger.debug("probe.bad", path="/mnt/x")
            logger.warning("probe.orphaned", kind="process", pid=42)

            payloads = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
            events = [item["event"] for item in payloads]
            self.assertEqual(events, ["logging.configured", "probe.orphaned"])
            self.assertEqual(payloads[1]["pid"], 42)
            self.assertEqual(payloads[1]["level"], "warning")

    def test_uses_environment_variables(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "from-env.jsonl"
            with patch.dict(
                os.environ,
                {"FSPROBE_LOG_LEVEL": "debug", "FSPROBE_LOG_FILE": str(path)},
                clear=False,
            ):
                configure_runtime_logging()
                get_runtime_logger().debug("walk.list_failed", path="/mnt/x")

            payloads = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
            self.assertTrue(any(item["event"] == "walk.list_failed" for item in payloads))

    def test_off_writes_nothing(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "silent.jsonl"
            logger = configure_runtime_logging(level="off", log_file=path)
            logger.error("run.finished")
            self.assertFalse(path.exists())

    def test_parse_level_aliases(self) -> None:
        self.assertEqual(parse_level("WARN"), "warning")
        self.assertEqual(parse_level("none"), "off")
        self.assertEqual(parse_level("chatty", default="info"), "info")
        self.assertEqual(parse_level(None), "warning")


if __name__ == "__main__":
    unittest.main()
