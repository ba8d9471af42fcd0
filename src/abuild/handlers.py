"""Source handlers and pool processors.

A SourceHandler turns one matched source file into one output file. A
PoolProcessor turns a whole FilePool into a single output file, e.g. a link
step.

Usage:
    @custom_handler
    def cc(ctx, src, out):
        ctx.spawn("gcc", "-c", src, "-o", out)

    @custom_processor
    def ld(ctx, pool, out):
        ctx.spawn("gcc", pool, "-o", out)

    binary = ld(objects)
"""

from pathlib import Path
from typing import Callable

from .errors import BuildStepError
from .execution import ExecutionContext
from .files import FilePool, temp_file


class SourceHandler:
    """Transformation applied to a single matched source file.

    The base implementation is the identity transform: the source file itself
    is the output.
    """

    name = "none"

    def process_source(self, ctx: ExecutionContext, file: Path) -> Path:
        """Transform a source file.

        Args:
            ctx: Execution context bound to the file
            file: The matched source file

        Returns:
            The output file
        """
        return file

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


NONE = SourceHandler()

SourceFunction = Callable[[ExecutionContext, Path, Path], None]
PoolFunction = Callable[[ExecutionContext, FilePool, Path], None]


class CustomHandler(SourceHandler):
    """Handler backed by a function fn(ctx, src, out).

    Each call allocates a fresh, empty output file for the function to fill.
    """

    def __init__(self, fn: SourceFunction, name: str | None = None) -> None:
        self.fn = fn
        self.name = name or getattr(fn, "__name__", "custom")

    def process_source(self, ctx: ExecutionContext, file: Path) -> Path:
        out = temp_file("processed_source")
        self.fn(ctx, file, out)
        return out


def custom_handler(fn: SourceFunction) -> CustomHandler:
    return CustomHandler(fn)


def _processor_error(error: BaseException) -> None:
    raise BuildStepError(f"Error in custom processor: {error}") from error


class PoolProcessor:
    """Aggregation step backed by a function fn(ctx, pool, out).

    Calling the processor opens one dedicated execution context bound to a
    fresh output file, runs the function, ends the context (also when the
    function raises) and returns the output file.
    """

    def __init__(self, fn: PoolFunction, name: str | None = None) -> None:
        self.fn = fn
        self.name = name or getattr(fn, "__name__", "processor")

    def __call__(self, pool: FilePool) -> Path:
        out = temp_file("processed_pool")
        ctx = ExecutionContext(_processor_error, out)
        try:
            self.fn(ctx, pool, out)
        finally:
            ctx.end()
        return out

    def __repr__(self) -> str:
        return f"<PoolProcessor {self.name}>"


def custom_processor(fn: PoolFunction) -> PoolProcessor:
    return PoolProcessor(fn)
