"""Subprocess execution with streamed output and a cooperative timeout."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from constants import Constants
from common.logging_utils import Timer, extra_context, is_debug_enabled

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024


@dataclass(frozen=True)
class ProcessResult:
    """Exit status and decoded output of a finished process."""

    returncode: int
    stdout: str
    stderr: str


async def _drain(stream: Optional[asyncio.StreamReader], chunks: List[bytes]) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            return
        chunks.append(chunk)


async def _wait_exit(process: asyncio.subprocess.Process, readers: Sequence[asyncio.Future]) -> int:
    await asyncio.gather(*readers)
    return await process.wait()


async def _terminate(process: asyncio.subprocess.Process, grace: float) -> None:
    """Ask the process to stop, then kill it if it outlives the grace period."""
    if process.returncode is not None:
        return
    try:
        process.terminate()
    except ProcessLookupError:
        return
    try:
        await asyncio.wait_for(process.wait(), timeout=grace)
    except asyncio.TimeoutError:
        try:
            process.kill()
        except ProcessLookupError:
            return
        await process.wait()


async def run_process(
    argv: Sequence[str],
    cwd: Optional[str] = None,
    timeout: float = Constants.DESCRIBE_TIMEOUT_SEC,
    grace: float = Constants.TERMINATE_GRACE_SEC,
) -> ProcessResult:
    """Run ``argv`` in ``cwd`` and collect its output.

    Both pipes are read while the process runs so a large description cannot
    fill the pipe buffer and stall the child. Process exit is raced against a
    timer; whichever finishes first wins and the other is cancelled.

    Raises:
        OSError: If the process cannot be spawned.
        TimeoutError: If the process does not exit within ``timeout`` seconds.
            The process is terminated (then killed after ``grace`` seconds) and
            any partial output is discarded.
    """
    with Timer() as timer:
        process = await asyncio.create_subprocess_exec(
            *argv,
            cwd=cwd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        out_chunks: List[bytes] = []
        err_chunks: List[bytes] = []
        readers = [
            asyncio.ensure_future(_drain(process.stdout, out_chunks)),
            asyncio.ensure_future(_drain(process.stderr, err_chunks)),
        ]
        exit_task = asyncio.ensure_future(_wait_exit(process, readers))
        timer_task = asyncio.ensure_future(asyncio.sleep(timeout))
        try:
            done, _ = await asyncio.wait({exit_task, timer_task}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            exit_task.cancel()
            timer_task.cancel()
            for reader in readers:
                reader.cancel()
            await asyncio.gather(exit_task, timer_task, *readers, return_exceptions=True)
            await _terminate(process, grace)
            raise

        if exit_task in done:
            timer_task.cancel()
            returncode = exit_task.result()
            if is_debug_enabled(logger):
                logger.debug(
                    "Process finished",
                    extra=extra_context(
                        event="process_exit",
                        component="process",
                        cwd=cwd,
                        returncode=returncode,
                        duration_ms=timer.duration_ms(),
                    ),
                )
            return ProcessResult(
                returncode=returncode,
                stdout=b"".join(out_chunks).decode("utf-8", errors="replace"),
                stderr=b"".join(err_chunks).decode("utf-8", errors="replace"),
            )

        exit_task.cancel()
        for reader in readers:
            reader.cancel()
        await asyncio.gather(exit_task, *readers, return_exceptions=True)
        await _terminate(process, grace)

    logger.debug("Process in %s timed out after %ss", cwd, timeout)
    raise TimeoutError(f"{' '.join(argv)} timed out after {timeout}s")
