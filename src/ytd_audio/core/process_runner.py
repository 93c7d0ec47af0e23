"""Bounded external-process runner.

This module is the **only** place in the codebase that launches OS
processes.  It offers two entry points:

* :meth:`ProcessRunner.run` — blocking, for short helper commands.
* :meth:`ProcessRunner.run_async` — admission-gated, streams every output
  line to an optional callback, and honours a cancel event.

Guarantees
----------
* Exactly one :class:`~ytd_audio.core.models.ProcessResult` per call.
* Status comes from the exit code only: ``0`` is success, anything
  else is an error.
* Process faults never escape as exceptions; they are attached to the
  result.  ``asyncio.CancelledError`` is the one exception that
  propagates, after the process is killed and the slot released.
* The admission slot is released on every exit path.
* On cancellation the process is killed, not merely abandoned.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
from os import PathLike
from pathlib import Path

from ytd_audio.core.admission import AdmissionGate
from ytd_audio.core.models import (
    LineCallback,
    ProcessInvocation,
    ProcessResult,
)
from ytd_audio.utils.arguments import split_arguments

log = logging.getLogger(__name__)

_ENCODING = "utf-8"

# Pipe buffer size.  Lines are split by hand, so a line longer than
# this is still captured whole.
_STREAM_LIMIT = 1024 * 1024
_READ_CHUNK = 64 * 1024

# How long to wait for pipes to drain after a kill.  Grandchildren
# (ffmpeg spawned by yt-dlp) may keep the pipes open.
_DRAIN_TIMEOUT = 5.0


class _StreamCapture:
    """Drains one output stream into its own line buffer."""

    def __init__(self, name: str, on_line: LineCallback | None) -> None:
        self.name = name
        self.lines: list[str] = []
        self.callback_error: BaseException | None = None
        self._on_line = on_line

    async def drain(self, stream: asyncio.StreamReader | None) -> None:
        if stream is None:
            return
        partial: list[bytes] = []
        while True:
            chunk = await stream.read(_READ_CHUNK)
            if not chunk:
                break
            *complete, tail = chunk.split(b"\n")
            for piece in complete:
                partial.append(piece)
                self._emit(b"".join(partial))
                partial.clear()
            if tail:
                partial.append(tail)
        if partial:
            self._emit(b"".join(partial))

    def _emit(self, raw: bytes) -> None:
        line = raw.decode(_ENCODING, errors="replace").rstrip("\r")
        self.lines.append(line)
        self._notify(line)

    def text(self) -> str:
        if not self.lines:
            return ""
        return "\n".join(self.lines) + "\n"

    def _notify(self, line: str) -> None:
        if self._on_line is None or self.callback_error is not None:
            return
        try:
            self._on_line(line)
        except Exception as exc:
            # Keep draining so the child never blocks on a full pipe.
            log.warning("Output callback failed on %s: %s", self.name, exc)
            self.callback_error = exc


class ProcessRunner:
    """Launches external executables and captures their output.

    Parameters
    ----------
    gate:
        Admission gate shared by every asynchronous invocation of this
        runner.  A private default gate is created when omitted; pass
        one explicitly to share a limit between runners.
    """

    def __init__(self, gate: AdmissionGate | None = None) -> None:
        self._gate: AdmissionGate = gate if gate is not None else AdmissionGate()

    @property
    def gate(self) -> AdmissionGate:
        return self._gate

    # ------------------------------------------------------------------
    # Synchronous path
    # ------------------------------------------------------------------

    def run(self, executable: str | PathLike[str], arguments: str | None = None) -> ProcessResult:
        """Run *executable* to completion, blocking the calling thread.

        The synchronous path is not admission-gated.
        """
        argv = [str(executable), *split_arguments(arguments)]
        log.debug("Running %s", argv)
        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                encoding=_ENCODING,
                errors="replace",
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            log.debug("Could not start %s: %s", executable, exc)
            return ProcessResult.fault(exc)

        log.debug("%s exited with %d", executable, completed.returncode)
        return ProcessResult.from_exit(
            completed.returncode,
            completed.stdout or "",
            completed.stderr or "",
        )

    # ------------------------------------------------------------------
    # Asynchronous path
    # ------------------------------------------------------------------

    async def run_async(
        self,
        executable: str | PathLike[str],
        arguments: str | None = None,
        *,
        on_line: LineCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> ProcessResult:
        """Run *executable* once a gate slot is free.

        Parameters
        ----------
        executable:
            Program to launch.
        arguments:
            Optional argument string.
        on_line:
            Called with every line from stdout and stderr.  Order is
            preserved within a stream, not across the two.
        cancel_event:
            Setting it abandons the slot wait or kills the running
            process; the result is then ``CANCELLED``.
        """
        return await self.invoke(
            ProcessInvocation(
                executable=Path(executable),
                arguments=arguments,
                on_line=on_line,
                cancel_event=cancel_event,
            )
        )

    async def invoke(self, invocation: ProcessInvocation) -> ProcessResult:
        """Run a prebuilt :class:`ProcessInvocation`."""
        cancel_event = invocation.cancel_event

        if not await self._gate.acquire(cancel_event):
            return ProcessResult.cancelled_result()
        try:
            if cancel_event is not None and cancel_event.is_set():
                return ProcessResult.cancelled_result()
            return await self._execute(invocation)
        finally:
            self._gate.release()

    async def _execute(self, invocation: ProcessInvocation) -> ProcessResult:
        argv = split_arguments(invocation.arguments)
        log.debug("Starting %s %s", invocation.executable, argv)
        try:
            process = await asyncio.create_subprocess_exec(
                str(invocation.executable),
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=_STREAM_LIMIT,
            )
        except (OSError, ValueError) as exc:
            log.debug("Could not start %s: %s", invocation.executable, exc)
            return ProcessResult.fault(exc)

        stdout = _StreamCapture("stdout", invocation.on_line)
        stderr = _StreamCapture("stderr", invocation.on_line)
        readers = {
            asyncio.ensure_future(stdout.drain(process.stdout)),
            asyncio.ensure_future(stderr.drain(process.stderr)),
        }

        try:
            exited = await self._wait_for_exit(process, invocation.cancel_event)
        except asyncio.CancelledError:
            await self._kill(process, readers)
            raise
        except Exception as exc:
            await self._kill(process, readers)
            log.warning("Supervising %s failed: %s", invocation.executable, exc)
            return ProcessResult.fault(exc, stderr.text())

        if not exited:
            await self._kill(process, readers)
            log.debug("Cancelled %s (pid %s)", invocation.executable, process.pid)
            return ProcessResult.cancelled_result(process.returncode, stderr.text())

        reader_error = await self._finish_readers(readers)
        exit_code = process.returncode if process.returncode is not None else -1
        log.debug("%s exited with %d", invocation.executable, exit_code)
        return ProcessResult.from_exit(
            exit_code,
            stdout.text(),
            stderr.text(),
            exception=stdout.callback_error or stderr.callback_error or reader_error,
        )

    # ------------------------------------------------------------------
    # Process supervision helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _wait_for_exit(
        process: asyncio.subprocess.Process,
        cancel_event: asyncio.Event | None,
    ) -> bool:
        """Wait for *process* to exit; ``False`` if cancelled first."""
        if cancel_event is None:
            await process.wait()
            return True

        exiting = asyncio.ensure_future(process.wait())
        cancelled = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({exiting, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancelled.cancel()
            if not exiting.done():
                exiting.cancel()
        return exiting.done() and not exiting.cancelled()

    @staticmethod
    async def _finish_readers(readers: set[asyncio.Future[None]]) -> BaseException | None:
        """Let the readers drain, then return the first reader fault."""
        done, pending = await asyncio.wait(readers, timeout=_DRAIN_TIMEOUT)
        for reader in pending:
            reader.cancel()
        if pending:
            await asyncio.wait(pending)
        faults = [
            reader.exception()
            for reader in done
            if not reader.cancelled() and reader.exception() is not None
        ]
        for fault in faults:
            log.warning("Reading process output failed: %s", fault)
        return faults[0] if faults else None

    @classmethod
    async def _kill(
        cls,
        process: asyncio.subprocess.Process,
        readers: set[asyncio.Future[None]],
    ) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        await asyncio.shield(process.wait())
        await cls._finish_readers(readers)
