"""Build object and build-script loading.

A Build owns the task registry and property store of one run. It is created
when the run starts, handed to the build script's configure() function, and
discarded when the run ends; nothing is kept in module-level state.

A build script is a Python file defining:

    def configure(build: Build) -> None:
        x86 = module(name="x86", sources=lambda s: s.add(cc, "src/x86/*.c"))

        def build_task(t: TaskBuilder) -> None:
            t.action(lambda: install(ld(process_sources(x86, build.root)), "build/bin"))

        build.default_task("build", build_task)
"""

import importlib.util
import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from . import output
from .errors import ConfigurationError
from .properties import VERSION_PROPERTY, PropertyStore
from .tasks import Task, TaskBuilder, TaskRegistry, task
from .version import __version__

logger = logging.getLogger(__name__)

DEFAULT_BUILD_FILE = "build.abuild.py"
BUILD_FILE_ENV = "ABUILD_BUILD_FILE"


class Build:
    """Task registry and property store owned by one run.

    Args:
        root: Working directory for source walks (default: current directory)
    """

    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = Path.cwd() if root is None else Path(root).absolute()
        self.tasks = TaskRegistry()
        self.properties = PropertyStore()

    def task(self, name: str, block: Callable[[TaskBuilder], None]) -> Task:
        """Build and register a task."""
        return self.tasks.register(name, task(block))

    def default_task(self, name: str, block: Callable[[TaskBuilder], None]) -> Task:
        """Build, register and designate the default task."""
        return self.tasks.default(name, block)

    def property(self, name: str, default: Optional[Any] = None) -> Any:
        return self.properties.get(name, default)

    def run(self, task_name: Optional[str] = None, overrides: Iterable[str] = ()) -> str:
        """Apply overrides, select a task and run it.

        Args:
            task_name: Task to run, or None for the default / "build" task
            overrides: key=value property overrides

        Returns:
            Name of the task that ran

        Raises:
            PropertyFormatError: On a malformed override
            UnknownTaskError, TaskSelectionError: If no task can be selected
            TaskGraphError: On an unresolved dependency or a cyclic graph
            Exception: Whatever a failing action raised
        """
        self.properties.apply_overrides(overrides)
        self.properties.set(VERSION_PROPERTY, __version__)
        selected = self.tasks.select(task_name)

        start = time.time()
        self.tasks.run(selected)
        output.log(f"Task {selected} finished in {time.time() - start:.2f}s")
        return selected


def default_build_file() -> Path:
    """Build script path from ABUILD_BUILD_FILE, else build.abuild.py."""
    return Path(os.environ.get(BUILD_FILE_ENV, DEFAULT_BUILD_FILE))


def load_build_script(path: Path, build: Build) -> None:
    """Import a build script and call its configure(build) function.

    Args:
        path: Python file describing the build
        build: Build object to configure

    Raises:
        FileNotFoundError: If the script does not exist
        ConfigurationError: If the script defines no configure() function
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Build script not found: {path}")

    spec = importlib.util.spec_from_file_location(f"abuild_script_{path.stem.replace('.', '_')}", path)
    if spec is None or spec.loader is None:
        raise ConfigurationError(f"Cannot load build script: {path}")
    script = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(script)

    configure = getattr(script, "configure", None)
    if not callable(configure):
        raise ConfigurationError(f"Build script {path} does not define configure(build)")

    logger.debug(f"Configuring build from {path}")
    configure(build)
