"""Fan entries out to a fixed number of concurrent probe slots."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass

from fsprobe.fs.walker import Entry
from fsprobe.probe.prober import Classification, EntryProber
from fsprobe.runtime_logging import get_runtime_logger

_DONE = object()


@dataclass(slots=True)
class PoolStats:
    dispatched: int = 0
    good: int = 0
    bad: int = 0
    active: int = 0
    peak_active: int = 0


class ProbePool:
    """Pull-based worker pool over a shared entry iterator.

    Each of ``concurrency`` workers repeatedly pulls one entry, probes it and
    emits the classification. Nothing is read ahead of the workers, so the
    walk advances only as fast as slots free up. A slot whose probe timed out
    is free again as soon as the executor gives up on the operation.
    """

    def __init__(self, prober: EntryProber, concurrency: int) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.prober = prober
        self.concurrency = concurrency
        self.stats = PoolStats()
        self._logger = get_runtime_logger()

    async def run(self, entries: Iterable[Entry]) -> AsyncIterator[Classification]:
        source = iter(entries)
        pull_lock = asyncio.Lock()
        # At most ``concurrency`` unconsumed classifications; end-of-work
        # markers bypass the limit so a cancelled worker never blocks.
        room = asyncio.Semaphore(self.concurrency)
        results: asyncio.Queue[object] = asyncio.Queue()

        if self.concurrency == 1:
            self._logger.info("pool.sequential")
        self._logger.info("pool.started", concurrency=self.concurrency)

        async def pull() -> object:
            # Generators cannot be advanced from two threads at once.
            async with pull_lock:
                return await asyncio.to_thread(next, source, _DONE)

        async def worker() -> None:
            try:
                while True:
                    entry = await pull()
                    if entry is _DONE:
                        return
                    assert isinstance(entry, Entry)
                    classification = await self._probe(entry)
                    await room.acquire()
                    results.put_nowait(classification)
            finally:
                results.put_nowait(_DONE)

        workers = [
            asyncio.create_task(worker(), name=f"fsprobe-worker-{index}")
            for index in range(self.concurrency)
        ]
        finished = 0
        try:
            while finished < len(workers):
                item = await results.get()
                if item is _DONE:
                    finished += 1
                    continue
                room.release()
                assert isinstance(item, Classification)
                yield item
            for task in workers:
                task.result()
        finally:
            for task in workers:
                task.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

    async def _probe(self, entry: Entry) -> Classification:
        stats = self.stats
        stats.dispatched += 1
        stats.active += 1
        stats.peak_active = max(stats.peak_active, stats.active)
        try:
            classification = await self.prober.probe(entry)
        finally:
            stats.active -= 1
        if classification.good:
            stats.good += 1
        else:
            stats.bad += 1
        return classification
