"""Stripe-index lookup for bad entries on Lustre-style filesystems."""

from __future__ import annotations

import shutil

from fsprobe.fs.walker import Entry
from fsprobe.probe.executor import Command, DeadlineExecutor
from fsprobe.runtime_logging import get_runtime_logger


class StripeIndexResolver:
    """Ask ``<tool> getstripe -i`` which storage target holds an entry.

    The query touches the same broken filesystem as the probes, so it runs
    under the same deadline. A missing tool, a failure or a timeout all
    resolve to ``None``.
    """

    def __init__(self, executor: DeadlineExecutor, timeout: float, tool: str = "lfs") -> None:
        self.executor = executor
        self.timeout = timeout
        self.tool = tool
        self.binary = shutil.which(tool)
        self._logger = get_runtime_logger()
        if self.binary is None:
            self._logger.info("stripe.unavailable", tool=tool)

    @property
    def available(self) -> bool:
        return self.binary is not None

    async def resolve(self, entry: Entry) -> str | None:
        if self.binary is None:
            return None

        argv = [self.binary, "getstripe", "-i"]
        if entry.is_dir:
            argv.append("-d")
        argv.append(entry.path)

        result = await self.executor.run(Command(tuple(argv), capture=True), self.timeout)
        if not result.ok:
            self._logger.debug("stripe.failed", path=entry.path, status=result.status)
            return None

        for line in result.output.splitlines():
            value = line.strip()
            if value:
                return value
        return None
