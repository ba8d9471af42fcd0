"""
Command-line interface for abuild.

Usage:
    abuild                          # Run the default task (or "build")
    abuild buildX86                 # Run a named task
    abuild build target=x86 cc=gcc  # Run with property overrides
    abuild -f other.abuild.py -C project build
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape

from . import output
from .build import Build, default_build_file, load_build_script
from .errors import AbuildError
from .version import __version__

_console = Console(stderr=True, highlight=False)


def split_positionals(positionals: Sequence[str]) -> tuple[Optional[str], list[str]]:
    """Separate the task name from key=value overrides.

    The first positional is always the task name; overrides can only follow it.
    """
    if positionals:
        return positionals[0], list(positionals[1:])
    return None, []


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="abuild",
        description="Run a task from a Python build description.",
    )
    parser.add_argument("positionals", nargs="*", metavar="TASK [KEY=VALUE ...]", help="task name followed by property overrides")
    parser.add_argument("-f", "--file", type=Path, default=None, help="build script (default: $ABUILD_BUILD_FILE or build.abuild.py)")
    parser.add_argument("-C", "--directory", type=Path, default=None, help="working directory for source matching")
    parser.add_argument("-v", "--verbose", action="store_true", help="verbose output")
    parser.add_argument("--version", action="version", version=f"abuild {__version__}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point of the abuild command.

    Returns:
        Process exit status: 0 on success, 1 on failure, 130 on interrupt
    """
    args = build_parser().parse_args(argv)
    task_name, overrides = split_positionals(args.positionals)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    output.init_timer()
    output.set_verbose(args.verbose)

    try:
        build = Build(args.directory)
        build.properties.apply_overrides(overrides)
        script = args.file if args.file is not None else default_build_file()
        if not script.is_absolute():
            script = build.root / script
        load_build_script(script, build)
        selected = build.run(task_name)

    except KeyboardInterrupt:
        _console.print("[bold yellow]✗ Build interrupted[/bold yellow]")
        return 130

    except (AbuildError, FileNotFoundError) as e:
        _console.print(f"[bold red]✗ {type(e).__name__}:[/bold red] {escape(str(e))}")
        return 1

    except Exception as e:
        _console.print(f"[bold red]✗ Unexpected error[/bold red] {type(e).__name__}: {escape(str(e))}")
        if args.verbose:
            _console.print_exception()
        return 1

    _console.print(f"[bold green]✓ Task {selected} succeeded[/bold green]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
