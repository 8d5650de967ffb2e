"""Wire walker, pool and sink together for one probing run."""

from __future__ import annotations

import asyncio
import itertools
import time
from dataclasses import dataclass
from typing import TextIO

from fsprobe.config.models import ProbeConfig
from fsprobe.fs.filtering import PathFilter
from fsprobe.fs.walker import walk
from fsprobe.probe.backends import ProbeBackend, backend_for
from fsprobe.probe.executor import DeadlineExecutor
from fsprobe.probe.pool import ProbePool
from fsprobe.probe.prober import EntryProber
from fsprobe.probe.stripe import StripeIndexResolver
from fsprobe.runtime_logging import get_runtime_logger
from fsprobe.sink import ResultSink


@dataclass(frozen=True, slots=True)
class RunSummary:
    entries: int
    good: int
    bad: int
    orphaned: int
    elapsed_s: float


async def probe_tree(
    config: ProbeConfig,
    sink: ResultSink,
    *,
    backend: ProbeBackend | None = None,
    executor: DeadlineExecutor | None = None,
) -> RunSummary:
    logger = get_runtime_logger()
    started = time.monotonic()
    executor = executor or DeadlineExecutor()
    resolver = None
    if config.stripe_diagnostics:
        resolver = StripeIndexResolver(executor, config.timeout, tool=config.stripe_tool)

    prober = EntryProber(config, backend or backend_for(config.isolation), executor, resolver)
    pool = ProbePool(prober, config.concurrency)
    # The root listing happens here, before any probe starts, so an
    # unlistable root fails the run up front.
    entries = walk(config.root, PathFilter(config.exclude))
    first = next(entries, None)

    logger.info(
        "run.started",
        root=str(config.root),
        timeout_s=config.timeout,
        concurrency=config.concurrency,
        access_check=config.access_check,
        isolation=config.isolation,
        stripe_diagnostics=config.stripe_diagnostics,
    )
    if first is not None:
        async for classification in pool.run(itertools.chain([first], entries)):
            sink.emit(classification)

    summary = RunSummary(
        entries=pool.stats.dispatched,
        good=pool.stats.good,
        bad=pool.stats.bad,
        orphaned=executor.orphaned,
        elapsed_s=round(time.monotonic() - started, 3),
    )
    logger.info(
        "run.finished",
        entries=summary.entries,
        good=summary.good,
        bad=summary.bad,
        orphaned=summary.orphaned,
        outstanding=executor.outstanding,
        peak_active=pool.stats.peak_active,
        elapsed_s=summary.elapsed_s,
    )
    return summary


def run(config: ProbeConfig, *, good: TextIO, bad: TextIO) -> RunSummary:
    sink = ResultSink(good, bad, root=config.root, absolute=config.absolute_paths)
    return asyncio.run(probe_tree(config, sink))
