"""Source transformation pipeline.

Sweeps a module group: for every matcher pair of every module, walks the
working directory, and runs the pair's handler on each matching file inside
its own ExecutionContext. Contexts are ended together once the sweep has
processed every match, so a handler cannot rely on a sibling's scratch files
having been removed. Every context is ended even when ending an earlier one
raises; the first such error is re-raised afterwards.

If a handler raises, the sweep stops immediately and contexts opened so far
are not ended; their scratch files and unjoined processes are left behind.
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from . import output
from .errors import BuildStepError
from .execution import ErrorHandler, ExecutionContext
from .files import FilePool, walk_files
from .handlers import SourceHandler
from .modules import JoinedModules, Module

logger = logging.getLogger(__name__)

SourceBlock = Callable[[ExecutionContext, Path, SourceHandler], None]


def module_error_handler(mod: Module) -> ErrorHandler:
    """Error handler that raises a BuildStepError naming the module."""

    def handle(error: BaseException) -> None:
        raise BuildStepError(f"Error in module {mod.name}: {error}") from error

    return handle


def each_source(group: JoinedModules, block: SourceBlock, root: Optional[Path] = None) -> int:
    """Run block(ctx, file, handler) for every file matched by every pair.

    A file matched by several pairs is visited once per pair.

    Args:
        group: Module or module group to sweep
        block: Called with a fresh context bound to each matched file
        root: Directory to walk (default: current working directory)

    Returns:
        Number of (file, handler) visits
    """
    root = Path.cwd() if root is None else Path(root)
    contexts: list[ExecutionContext] = []
    try:
        for mod in group.modules:
            error_handler = module_error_handler(mod)
            for pattern, handler in mod.source_set:
                # Collect matches before running handlers that may write under root
                matched = [file for file in walk_files(root) if pattern.matches(file, root)]
                for file in matched:
                    ctx = ExecutionContext(error_handler, file)
                    contexts.append(ctx)
                    block(ctx, file, handler)
    except Exception:
        logger.warning(f"Source sweep aborted; {len(contexts)} execution contexts were not ended")
        raise

    # A failure escalated from one context must not leave later ones running
    errors: list[Exception] = []
    for ctx in contexts:
        try:
            ctx.end()
        except Exception as e:
            errors.append(e)
    if errors:
        logger.debug(f"{len(errors)} of {len(contexts)} execution contexts failed to end cleanly")
        raise errors[0]
    return len(contexts)


def process_sources(group: JoinedModules, root: Optional[Path] = None) -> FilePool:
    """Run each matched file through its handler and collect the outputs.

    Args:
        group: Module or module group to process
        root: Directory to walk (default: current working directory)

    Returns:
        Pool of handler outputs; empty if nothing matched
    """
    files = FilePool()

    def collect(ctx: ExecutionContext, file: Path, handler: SourceHandler) -> None:
        output.log_detail(f"[{handler.name}] {file.name}", verbose_only=True)
        files.add(handler.process_source(ctx, file))

    with output.TimedLogger("Processing sources", verbose_only=True) as timer:
        count = each_source(group, collect, root)
        timer.detail(f"{count} sources processed, {len(files)} outputs")
    return files
