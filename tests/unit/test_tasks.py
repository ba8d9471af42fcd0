"""Unit tests for the task graph."""

import pytest

from abuild.errors import ConfigurationError
from abuild.tasks import (
    Task,
    TaskBuilder,
    TaskGraphError,
    TaskRecursionError,
    TaskRegistry,
    TaskSelectionError,
    UnknownTaskError,
    UnresolvedTaskError,
    task,
)


def recording_task(log: list[str], name: str, *deps: str) -> Task:
    def block(t: TaskBuilder) -> None:
        t.depends_on(*deps)
        t.action(lambda: log.append(name))

    return task(block)


class TestTaskBuilder:
    def test_actions_keep_declared_order(self):
        log: list[str] = []

        def block(t: TaskBuilder) -> None:
            t.action(lambda: log.append("first"))

            @t.action
            def second() -> None:
                log.append("second")

            t.depends_on("a", "b")

        built = task(block)
        for action in built.actions:
            action()
        assert log == ["first", "second"]
        assert built.dependencies == frozenset({"a", "b"})


class TestRun:
    """Dependency recursion and action execution."""

    def test_dependencies_run_first(self):
        log: list[str] = []
        registry = TaskRegistry()
        registry["compile"] = recording_task(log, "compile")
        registry["link"] = recording_task(log, "link", "compile")
        registry.run("link")
        assert log == ["compile", "link"]

    def test_diamond_reruns_shared_ancestor(self):
        """No memoisation: a shared dependency runs once per path."""
        log: list[str] = []
        registry = TaskRegistry()
        registry["root"] = recording_task(log, "root")
        registry["left"] = recording_task(log, "left", "root")
        registry["right"] = recording_task(log, "right", "root")
        registry["bottom"] = recording_task(log, "bottom", "left", "right")
        registry.run("bottom")
        assert log == ["root", "left", "root", "right", "bottom"]

    def test_unresolved_dependency(self):
        registry = TaskRegistry()
        registry["build"] = recording_task([], "build", "missing")
        with pytest.raises(UnresolvedTaskError, match="Task missing \\(dependency of task build\\) does not exist"):
            registry.run("build")

    def test_cycle_fails_detectably(self):
        """A -> B -> A terminates with a TaskRecursionError, not silently."""
        registry = TaskRegistry()
        registry["a"] = recording_task([], "a", "b")
        registry["b"] = recording_task([], "b", "a")
        with pytest.raises(TaskRecursionError, match="cycle") as info:
            registry.run("a")
        assert isinstance(info.value.__cause__, RecursionError)
        assert isinstance(info.value, TaskGraphError)

    def test_failing_action_aborts_remaining(self):
        log: list[str] = []

        def fail() -> None:
            raise RuntimeError("link failed")

        def block(t: TaskBuilder) -> None:
            t.action(lambda: log.append("one"))
            t.action(fail)
            t.action(lambda: log.append("three"))

        registry = TaskRegistry()
        registry["build"] = task(block)
        with pytest.raises(RuntimeError, match="link failed"):
            registry.run("build")
        assert log == ["one"]

    def test_run_unknown_task(self):
        with pytest.raises(UnknownTaskError):
            TaskRegistry().run("nope")


class TestSelection:
    def test_explicit_name(self):
        registry = TaskRegistry()
        registry["clean"] = Task()
        assert registry.select("clean") == "clean"

    def test_explicit_unknown_name(self):
        registry = TaskRegistry()
        with pytest.raises(UnknownTaskError, match="Unknown task: deploy"):
            registry.select("deploy")

    def test_default_task_preferred(self):
        registry = TaskRegistry()
        registry["build"] = Task()
        registry.default("all", lambda t: t.depends_on("build"))
        assert registry.select(None) == "all"
        assert registry.default_name == "all"

    def test_falls_back_to_build(self):
        registry = TaskRegistry()
        registry["build"] = Task()
        assert registry.select(None) == "build"

    def test_nothing_to_select(self):
        registry = TaskRegistry()
        registry["other"] = Task()
        with pytest.raises(TaskSelectionError, match="No default task defined"):
            registry.select(None)

    def test_single_default(self):
        registry = TaskRegistry()
        registry.default("a", lambda t: None)
        with pytest.raises(ConfigurationError, match="already set"):
            registry.default("b", lambda t: None)

    def test_selection_errors_are_configuration_errors(self):
        assert issubclass(UnknownTaskError, ConfigurationError)
        assert issubclass(TaskSelectionError, ConfigurationError)

    def test_names(self):
        registry = TaskRegistry()
        registry["b"] = Task()
        registry["a"] = Task()
        assert registry.names() == ["a", "b"]
        assert "a" in registry
        assert registry.get("c") is None
