"""Task graph: named tasks with ordered actions and prerequisite tasks.

Running a task first runs each of its dependencies (recursively), then its own
actions in declared order. There is no memoisation: a task reached along two
paths runs twice. There is no cycle detection either: a cyclic graph recurses
until Python's recursion limit is hit, which the top-level run() reports as a
TaskRecursionError.

Usage:
    registry = TaskRegistry()

    def build_x86(t: TaskBuilder) -> None:
        t.action(lambda: install(ld(process_sources(x86)), "build/bin"))

    registry["buildX86"] = task(build_x86)
    registry.default("build", lambda t: t.depends_on("buildX86"))

    registry.run(registry.select(None))
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from . import output
from .errors import AbuildError, ConfigurationError

logger = logging.getLogger(__name__)

Action = Callable[[], None]

DEFAULT_TASK_NAME = "build"


class TaskGraphError(AbuildError):
    """Base class for task graph failures."""

    pass


class UnresolvedTaskError(TaskGraphError):
    """Raised when a task depends on a task name that is not registered."""

    pass


class UnknownTaskError(TaskGraphError, ConfigurationError):
    """Raised when the requested task name is not registered."""

    pass


class TaskSelectionError(TaskGraphError, ConfigurationError):
    """Raised when no task was named and neither a default nor "build" exists."""

    pass


class TaskRecursionError(TaskGraphError):
    """Raised when running a task exhausts the recursion limit (dependency cycle)."""

    pass


@dataclass(frozen=True)
class Task:
    """A unit of work in the task graph.

    Attributes:
        actions: Callables run in order
        dependencies: Names of tasks run before the actions
    """

    actions: tuple[Action, ...] = ()
    dependencies: frozenset[str] = field(default_factory=frozenset)


class TaskBuilder:
    """Collects actions and dependencies inside a task block."""

    def __init__(self) -> None:
        self.actions: list[Action] = []
        self.dependencies: set[str] = set()

    def action(self, fn: Action) -> Action:
        """Append an action. Usable as a decorator."""
        self.actions.append(fn)
        return fn

    def depends_on(self, *names: str) -> None:
        self.dependencies.update(names)

    def done(self) -> Task:
        return Task(tuple(self.actions), frozenset(self.dependencies))


def task(block: Callable[[TaskBuilder], None]) -> Task:
    """Build a Task from a configuration block."""
    builder = TaskBuilder()
    block(builder)
    return builder.done()


class TaskRegistry:
    """Named tasks of one build, with at most one default task."""

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}
        self._default: Optional[str] = None

    def register(self, name: str, t: Task) -> Task:
        self._tasks[name] = t
        return t

    def __setitem__(self, name: str, t: Task) -> None:
        self.register(name, t)

    def __getitem__(self, name: str) -> Task:
        return self._tasks[name]

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def get(self, name: str) -> Optional[Task]:
        return self._tasks.get(name)

    def names(self) -> list[str]:
        return sorted(self._tasks)

    @property
    def default_name(self) -> Optional[str]:
        return self._default

    def set_default(self, name: str) -> None:
        """Designate a registered task as the default.

        Raises:
            ConfigurationError: If a default is already designated
            UnknownTaskError: If the name is not registered
        """
        if self._default is not None:
            raise ConfigurationError(f"Default task already set to '{self._default}'")
        if name not in self._tasks:
            raise UnknownTaskError(f"Unknown task: {name}")
        self._default = name

    def default(self, name: str, block: Callable[[TaskBuilder], None]) -> Task:
        """Build, register and designate the default task in one step."""
        t = self.register(name, task(block))
        self.set_default(name)
        return t

    def select(self, name: Optional[str] = None) -> str:
        """Choose the task to run.

        Args:
            name: Explicitly requested task, or None

        Returns:
            The explicit name, else the default task, else "build"

        Raises:
            UnknownTaskError: If an explicit name is not registered
            TaskSelectionError: If nothing can be selected
        """
        if name is not None:
            if name not in self._tasks:
                raise UnknownTaskError(f"Unknown task: {name}")
            return name
        if self._default is not None:
            return self._default
        output.log_warning(f"No default task defined; using '{DEFAULT_TASK_NAME}'")
        if DEFAULT_TASK_NAME in self._tasks:
            return DEFAULT_TASK_NAME
        raise TaskSelectionError("No default task defined")

    def run(self, name: str) -> None:
        """Run a task and, before it, all of its dependencies.

        Raises:
            UnknownTaskError: If the name is not registered
            UnresolvedTaskError: If a dependency is not registered
            TaskRecursionError: If the graph recursion does not terminate
        """
        t = self._tasks.get(name)
        if t is None:
            raise UnknownTaskError(f"Unknown task: {name}")
        try:
            self._run(name, t)
        except RecursionError as e:
            raise TaskRecursionError(
                f"Recursion limit exceeded while running task '{name}'; the task graph probably contains a cycle"
            ) from e

    def _run(self, name: str, t: Task) -> None:
        for dep_name in sorted(t.dependencies):
            dep = self._tasks.get(dep_name)
            if dep is None:
                raise UnresolvedTaskError(f"Task {dep_name} (dependency of task {name}) does not exist")
            self._run(dep_name, dep)
        logger.debug(f"Running {len(t.actions)} actions of task {name}")
        output.log_task(name)
        for action in t.actions:
            action()
