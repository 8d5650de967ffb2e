"""Run blocking probe operations against a hard deadline.

An operation that outlives its deadline is killed where that is possible
and abandoned either way: the caller gets ``timed_out`` back as soon as the
timer fires and never waits for the operation to acknowledge the kill. A
process stuck in uninterruptible I/O ignores SIGKILL until the kernel call
returns, and a thread stuck in ``os.stat`` cannot be interrupted at all, so
each abandoned operation may keep holding a process or thread slot. Those
are counted in ``DeadlineExecutor.orphaned``; cap ``concurrency`` if the
host cannot tolerate many of them.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import signal
import subprocess
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal, Union

from fsprobe.runtime_logging import get_runtime_logger

GuardedStatus = Literal["completed", "timed_out"]


@dataclass(frozen=True, slots=True)
class Command:
    """A probe run as a child process; success means exit status 0."""

    argv: tuple[str, ...]
    capture: bool = False


Operation = Union[Command, Callable[[], object]]


@dataclass(frozen=True, slots=True)
class GuardedResult:
    status: GuardedStatus
    ok: bool = False
    output: str = ""

    @property
    def timed_out(self) -> bool:
        return self.status == "timed_out"


TIMED_OUT = GuardedResult(status="timed_out")


class DeadlineExecutor:
    def __init__(self) -> None:
        self.orphaned = 0
        self.reaped = 0
        self._reapers: set[asyncio.Task[None]] = set()
        self._logger = get_runtime_logger()

    @property
    def outstanding(self) -> int:
        """Abandoned child processes that have not exited yet."""
        return len(self._reapers)

    async def run(self, operation: Operation, timeout: float) -> GuardedResult:
        if isinstance(operation, Command):
            return await self._run_command(operation, timeout)
        return await self._run_callable(operation, timeout)

    async def _run_command(self, command: Command, timeout: float) -> GuardedResult:
        try:
            process = await asyncio.create_subprocess_exec(
                *command.argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE if command.capture else subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            self._logger.debug("probe.spawn_failed", argv=list(command.argv), error=str(exc))
            return GuardedResult(status="completed", ok=False)

        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            self._abandon_process(process, command)
            return TIMED_OUT

        output = stdout.decode("utf-8", errors="replace") if stdout else ""
        return GuardedResult(status="completed", ok=process.returncode == 0, output=output)

    async def _run_callable(self, operation: Callable[[], object], timeout: float) -> GuardedResult:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[bool] = loop.create_future()

        def settle(ok: bool | None, error: BaseException | None) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(bool(ok))

        def target() -> None:
            ok: bool | None = None
            error: BaseException | None = None
            try:
                ok = bool(operation())
            except OSError:
                ok = False
            except Exception as exc:
                error = exc
            # The loop may already be closed when an abandoned call finally
            # returns; nobody is waiting for it then.
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(settle, ok, error)

        thread = threading.Thread(target=target, name="fsprobe-probe", daemon=True)
        thread.start()
        try:
            ok = await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            self.orphaned += 1
            self._logger.warning(
                "probe.orphaned",
                kind="thread",
                operation=getattr(operation, "__name__", repr(operation)),
                orphaned=self.orphaned,
            )
            return TIMED_OUT
        return GuardedResult(status="completed", ok=ok)

    def _abandon_process(self, process: asyncio.subprocess.Process, command: Command) -> None:
        with contextlib.suppress(ProcessLookupError, PermissionError):
            os.killpg(process.pid, signal.SIGKILL)
        self.orphaned += 1
        self._logger.warning(
            "probe.orphaned",
            kind="process",
            argv=list(command.argv),
            pid=process.pid,
            orphaned=self.orphaned,
        )
        reaper = asyncio.get_running_loop().create_task(self._reap(process, command))
        self._reapers.add(reaper)
        reaper.add_done_callback(self._reapers.discard)

    async def _reap(self, process: asyncio.subprocess.Process, command: Command) -> None:
        returncode = await process.wait()
        self.reaped += 1
        self._logger.debug(
            "probe.orphan_reaped",
            argv=list(command.argv),
            pid=process.pid,
            returncode=returncode,
        )
