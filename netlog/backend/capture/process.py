"""
capture/process.py

CaptureProcess — runs the external capture command (tcpdump by default)
and exposes its stdout as an async iterator of text lines.

The capture tool itself is an external collaborator: this module only
spawns it, reads its output pipe and stops it on shutdown. Parsing lives
in parser.py, persistence in the ingestion loop.

Lifecycle:
    capture = CaptureProcess(["tcpdump", "-l", "-an"])
    await capture.start()
    async for line in capture.lines():
        ...
    await capture.stop()
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import AsyncIterator

logger = logging.getLogger(__name__)

# Longest line accepted from the pipe before StreamReader gives up.
_LINE_LIMIT = 1 << 20


async def iter_lines(reader: asyncio.StreamReader) -> AsyncIterator[str]:
    """Yield decoded lines (terminator stripped) until end of stream."""
    while True:
        raw = await reader.readline()
        if not raw:
            return
        yield raw.decode("utf-8", errors="replace").rstrip("\r\n")


async def stdin_lines() -> AsyncIterator[str]:
    """Read capture lines from this process's stdin, e.g. `tcpdump -l -an | netlog --stdin`."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=_LINE_LIMIT)
    await loop.connect_read_pipe(
        lambda: asyncio.StreamReaderProtocol(reader), sys.stdin
    )
    async for line in iter_lines(reader):
        yield line


class CaptureProcess:
    """
    Wraps the capture subprocess.

    Args:
        command: argv of the capture command. Its stdout must carry one
                 packet observation per line.
    """

    def __init__(self, command: list[str]) -> None:
        if not command:
            raise ValueError("capture command must not be empty")
        self._command = list(command)
        self._proc: asyncio.subprocess.Process | None = None

    async def start(self) -> None:
        """Spawn the capture command. Raises OSError if it cannot be executed."""
        if self._proc is not None:
            logger.warning("CaptureProcess.start() called but already running")
            return
        logger.info("Starting capture — command=%r", self._command)
        self._proc = await asyncio.create_subprocess_exec(
            *self._command,
            stdout=asyncio.subprocess.PIPE,
            limit=_LINE_LIMIT,
        )
        logger.info("Capture started — pid=%d", self._proc.pid)

    def lines(self) -> AsyncIterator[str]:
        if self._proc is None or self._proc.stdout is None:
            raise RuntimeError("CaptureProcess not started — call start() first")
        return iter_lines(self._proc.stdout)

    async def stop(self, timeout: float = 5.0) -> int | None:
        """
        Stop the capture command and return its exit status.

        A command whose stdout already hit end-of-stream is left to exit on
        its own; otherwise it is sent SIGTERM. Either way it is killed if it
        is still alive after `timeout` seconds.
        """
        proc = self._proc
        if proc is None:
            return None
        self._proc = None
        if proc.returncode is None:
            if proc.stdout is not None and proc.stdout.at_eof():
                logger.info("Waiting for capture to exit — pid=%d", proc.pid)
            else:
                logger.info("Stopping capture — pid=%d", proc.pid)
                try:
                    proc.terminate()
                except ProcessLookupError:
                    pass
            try:
                await asyncio.wait_for(proc.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning("Capture did not exit after %.1fs — killing", timeout)
                proc.kill()
                await proc.wait()
        logger.info("Capture stopped — returncode=%s", proc.returncode)
        return proc.returncode

    @property
    def is_running(self) -> bool:
        return self._proc is not None and self._proc.returncode is None

    def __repr__(self) -> str:  # pragma: no cover
        return f"CaptureProcess(command={self._command!r}, running={self.is_running})"
