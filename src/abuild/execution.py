"""Execution contexts: scoped regions for external tools and scratch files.

A handler runs inside an ExecutionContext. It may spawn any number of external
processes and allocate scratch files. When the pipeline step that owns the
context calls end(), every process still running is joined and every scratch
file is deleted, whether or not the handler waited on its processes itself.

Usage:
    ctx = ExecutionContext(error_handler, subject=src)
    proc = ctx.spawn("gcc", "-c", src, "-o", out).on_failure(report)
    result = proc.join()      # optional; end() joins anything left
    ctx.end()

Processes run concurrently with the build. The set of live processes is
guarded by a lock since join() may remove entries while end() drains them.
"""

import logging
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from . import output
from .errors import AbuildError, BuildStepError
from .files import FilePool, PrefixedPool, temp_file
from .subprocess_utils import safe_popen

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[BaseException], None]


class ContextClosedError(AbuildError, RuntimeError):
    """Raised when an execution context is used after end()."""

    pass


@dataclass(frozen=True)
class ProcessFailure:
    """Details handed to a failure callback when a process exits nonzero."""

    exit_code: int
    stdout: str
    stderr: str


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of a joined process."""

    stdout: str
    stderr: str
    exit_code: int

    @property
    def success(self) -> bool:
        return self.exit_code == 0


FailureCallback = Callable[[ProcessFailure], None]


def report_failure(failure: ProcessFailure) -> None:
    """Default failure callback: report the captured stderr in the build log."""
    output.log_error(f"Process exited with code {failure.exit_code}")
    output.log_stderr(failure.stderr)


def marshal_arguments(args: tuple[Any, ...]) -> list[str]:
    """Convert spawn() arguments to command-line strings.

    Conversion rules:
        Path          -> absolute path
        FilePool      -> one absolute path per member, in pool order
        PrefixedPool  -> one prefix + absolute path per member
        anything else -> str(arg)
    """
    command: list[str] = []
    for arg in args:
        if isinstance(arg, Path):
            command.append(str(arg.absolute()))
        elif isinstance(arg, FilePool):
            command.extend(str(f) for f in arg)
        elif isinstance(arg, PrefixedPool):
            command.extend(arg.arguments())
        else:
            command.append(str(arg))
    return command


class ProcessHandle:
    """A process spawned inside an ExecutionContext.

    Attributes:
        command: The marshalled command line
    """

    def __init__(
        self,
        context: "ExecutionContext",
        command: list[str],
        process: subprocess.Popen,
        stdout_path: Path,
        stderr_path: Path,
    ) -> None:
        self.command = command
        self._context = context
        self._process = process
        self._stdout_path = stdout_path
        self._stderr_path = stderr_path
        self._callback: FailureCallback = report_failure
        self._result: Optional[ProcessResult] = None
        self._lock = threading.Lock()

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def joined(self) -> bool:
        return self._result is not None

    def on_failure(self, callback: FailureCallback) -> "ProcessHandle":
        """Replace the callback invoked when the process exits nonzero.

        Returns:
            This handle, for chaining after spawn()
        """
        self._callback = callback
        return self

    def join(self) -> ProcessResult:
        """Wait for the process to exit and collect its output.

        Captured stderr is echoed to the build log. On a nonzero exit the
        failure callback runs. The handle then leaves its context's live set,
        so end() will not join it again. Joining an already joined handle
        returns the first result.

        Returns:
            ProcessResult with captured stdout, stderr and the exit code
        """
        with self._lock:
            if self._result is not None:
                return self._result

            exit_code = self._process.wait()
            stdout = self._stdout_path.read_text(encoding="utf-8", errors="replace")
            stderr = self._stderr_path.read_text(encoding="utf-8", errors="replace")
            self._stdout_path.unlink(missing_ok=True)
            self._stderr_path.unlink(missing_ok=True)

            output.log_stderr(stderr)
            logger.debug(f"Process {self._process.pid} exited with code {exit_code}")
            self._result = ProcessResult(stdout=stdout, stderr=stderr, exit_code=exit_code)

        try:
            if exit_code != 0:
                self._callback(ProcessFailure(exit_code=exit_code, stdout=stdout, stderr=stderr))
        finally:
            self._context._retire(self)
        return self._result


class ExecutionContext:
    """Scoped region that owns spawned processes and scratch files.

    Args:
        error_handler: Called by fail() to escalate a handler failure; it is
            expected to raise.
        subject: File the context is bound to (the matched source, or the
            output file of an aggregation step), or None.
    """

    def __init__(self, error_handler: ErrorHandler, subject: Optional[Path] = None) -> None:
        self.error_handler = error_handler
        self.subject = subject
        self._processes: set[ProcessHandle] = set()
        self._scratch: list[Path] = []
        self._lock = threading.Lock()
        self._ended = False
        self._spawned = 0

    @property
    def spawned_count(self) -> int:
        """Number of processes spawned over the context's lifetime."""
        return self._spawned

    @property
    def live_count(self) -> int:
        """Number of spawned processes not yet joined."""
        with self._lock:
            return len(self._processes)

    @property
    def scratch_files(self) -> list[Path]:
        return list(self._scratch)

    @property
    def ended(self) -> bool:
        return self._ended

    def _check_open(self) -> None:
        if self._ended:
            raise ContextClosedError("Execution context has already ended")

    def spawn(self, *args: Any) -> ProcessHandle:
        """Launch an external process without waiting for it.

        Args:
            *args: Command and arguments; see marshal_arguments() for how
                paths and pools are converted

        Returns:
            Handle of the running process

        Raises:
            ContextClosedError: If the context has ended
            OSError: If the executable cannot be started
        """
        self._check_open()
        command = marshal_arguments(args)
        stdout_path = temp_file("proc_out")
        stderr_path = temp_file("proc_err")
        logger.debug(f"Spawning: {' '.join(command)}")
        try:
            process = safe_popen(command, stdout_path, stderr_path)
        except BaseException:
            stdout_path.unlink(missing_ok=True)
            stderr_path.unlink(missing_ok=True)
            raise

        handle = ProcessHandle(self, command, process, stdout_path, stderr_path)
        with self._lock:
            self._processes.add(handle)
            self._spawned += 1
        return handle

    def allocate_scratch(self) -> Path:
        """Allocate a temporary file that is deleted when the context ends."""
        self._check_open()
        temp = temp_file("req")
        with self._lock:
            self._scratch.append(temp)
        return temp

    def fail(self, message: str) -> None:
        """Escalate a handler failure through the context's error handler."""
        self.error_handler(BuildStepError(message))

    def _retire(self, handle: ProcessHandle) -> None:
        with self._lock:
            self._processes.discard(handle)

    def end(self) -> None:
        """Join every live process, then delete every scratch file.

        Called once by the pipeline step that created the context, never by
        handler code.

        Raises:
            ContextClosedError: If the context has already ended
        """
        self._check_open()
        self._ended = True

        with self._lock:
            pending = list(self._processes)

        # A raising failure callback must not leave later processes unjoined
        errors: list[Exception] = []
        for handle in pending:
            try:
                handle.join()
            except Exception as e:
                errors.append(e)

        for scratch in self._scratch:
            scratch.unlink(missing_ok=True)
        logger.debug(f"Context ended: {self._spawned} processes, {len(self._scratch)} scratch files")

        if errors:
            raise errors[0]
