"""Classify a single entry as good or bad."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from fsprobe.config.models import ProbeConfig
from fsprobe.fs.walker import Entry
from fsprobe.probe.backends import ProbeBackend
from fsprobe.probe.executor import DeadlineExecutor, GuardedResult
from fsprobe.probe.stripe import StripeIndexResolver
from fsprobe.runtime_logging import get_runtime_logger

Status = Literal["good", "bad"]
Reason = Literal["ok", "timeout", "failed", "unlistable"]


@dataclass(frozen=True, slots=True)
class Classification:
    entry: Entry
    status: Status
    reason: Reason = "ok"
    diagnostic: str | None = None

    @property
    def good(self) -> bool:
        return self.status == "good"


def _failure_reason(result: GuardedResult) -> Reason:
    return "timeout" if result.timed_out else "failed"


class EntryProber:
    def __init__(
        self,
        config: ProbeConfig,
        backend: ProbeBackend,
        executor: DeadlineExecutor,
        resolver: StripeIndexResolver | None = None,
    ) -> None:
        self.config = config
        self.backend = backend
        self.executor = executor
        self.resolver = resolver
        self._logger = get_runtime_logger()

    async def probe(self, entry: Entry) -> Classification:
        """Run metadata then (optionally) access probes for ``entry``.

        Timeouts and failures are not distinguished in the outcome; both
        make the entry bad. ``reason`` only feeds the runtime log.
        """
        if entry.listing_error is not None:
            return await self._bad(entry, "unlistable")

        result = await self.executor.run(self.backend.metadata(entry), self.config.timeout)
        if not result.ok:
            return await self._bad(entry, _failure_reason(result), probe="metadata")

        if not self.config.access_check:
            return Classification(entry=entry, status="good")

        result = await self.executor.run(self.backend.access(entry), self.config.timeout)
        if not result.ok:
            return await self._bad(entry, _failure_reason(result), probe="access")

        return Classification(entry=entry, status="good")

    async def _bad(self, entry: Entry, reason: Reason, *, probe: str | None = None) -> Classification:
        self._logger.debug("probe.bad", path=entry.path, reason=reason, probe=probe)
        diagnostic = None
        if self.resolver is not None:
            diagnostic = await self.resolver.resolve(entry)
        return Classification(entry=entry, status="bad", reason=reason, diagnostic=diagnostic)
