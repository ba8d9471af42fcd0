"""Modules and module composition.

A Module is a named group of (pattern, handler) source matchers plus declared
external dependencies. Modules are defined once through configuration blocks
that receive explicit builder objects, and are immutable afterwards.

Usage:
    def x86_sources(src: SourcesBuilder) -> None:
        src.add(cc, "src/x86/*.c")
        src.add(asm, "src/x86/*.asm")

    def common_dependencies(deps: DependenciesBuilder) -> None:
        deps.file("https://example.com/thing_code.a", static_lib)

    x86 = module(name="x86", sources=x86_sources)
    common = module(name="common", dependencies=common_dependencies)

    everything = common.with_(x86)
    objects = process_sources(everything)
    inputs = everything.dependencies()

Composite queries deduplicate: matcher pairs by identity, files by path
identity. Concatenating the same module twice is harmless.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Iterable, Optional

from .dependencies import ArchiveSource, Dependency, DependencyType, DownloadSource, FileSource, NONE_TYPE
from .errors import ConfigurationError
from .files import FilePool, walk_files
from .handlers import SourceHandler
from .patterns import SourcePattern

logger = logging.getLogger(__name__)

MatcherPair = tuple[SourcePattern, SourceHandler]


class _Builder:
    """Base for configuration builders that close when their block returns."""

    _what = "configuration"

    def __init__(self) -> None:
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise ConfigurationError(f"{self._what} can only be registered inside its configuration block")

    def close(self) -> None:
        self._closed = True


class SourcesBuilder(_Builder):
    """Collects (pattern, handler) pairs inside a sources block."""

    _what = "Sources"

    def __init__(self) -> None:
        super().__init__()
        self._pairs: list[MatcherPair] = []

    def add(self, handler: SourceHandler, *globs: str) -> None:
        """Register one (pattern, handler) pair per glob.

        Raises:
            ConfigurationError: If called after the sources block returned
        """
        self._check_open()
        for glob in globs:
            self._pairs.append((SourcePattern(glob), handler))

    def build(self) -> tuple[MatcherPair, ...]:
        return tuple(self._pairs)


class DependenciesBuilder(_Builder):
    """Collects dependencies inside a dependencies block."""

    _what = "Dependencies"

    def __init__(self, module_name: str) -> None:
        super().__init__()
        self.module_name = module_name
        self._dependencies: list[Dependency] = []

    def add(self, source: FileSource, type: DependencyType = NONE_TYPE) -> Dependency:
        """Register a dependency on an arbitrary FileSource.

        Raises:
            ConfigurationError: If called after the dependencies block returned
        """
        self._check_open()
        if source.module is None:
            source.module = self.module_name
        dependency = Dependency(source, type)
        self._dependencies.append(dependency)
        return dependency

    def file(self, url: str, type: DependencyType = NONE_TYPE) -> Dependency:
        """Register a plain download."""
        return self.add(DownloadSource(url), type)

    def zip(self, url: str, type: DependencyType = NONE_TYPE) -> Dependency:
        """Register a download that is extracted into a directory."""
        return self.add(ArchiveSource(url), type)

    def build(self) -> tuple[Dependency, ...]:
        return tuple(self._dependencies)


class ModuleBuilder(_Builder):
    """Receives the module-level settings inside a module block."""

    _what = "Module settings"

    def __init__(self) -> None:
        super().__init__()
        self.name: Optional[str] = None


class JoinedModules(ABC):
    """An ordered list of modules queried as a unit."""

    @property
    @abstractmethod
    def modules(self) -> tuple["Module", ...]:
        ...

    def with_(self, other: "JoinedModules") -> "ModuleGroup":
        """Concatenate two module lists. Order is kept and duplicates are allowed."""
        return ModuleGroup(self.modules + other.modules)

    def matchers(self) -> list[MatcherPair]:
        """All matcher pairs across the modules, deduplicated by identity."""
        pairs: dict[MatcherPair, None] = {}
        for mod in self.modules:
            for pair in mod.source_set:
                pairs.setdefault(pair, None)
        return list(pairs)

    def sources(self, root: Optional[Path] = None) -> FilePool:
        """Files under root matching at least one pattern of any module.

        The tree is walked once; each matching file appears once no matter how
        many patterns it satisfies.

        Args:
            root: Directory to walk (default: current working directory)
        """
        root = Path.cwd() if root is None else Path(root)
        patterns = [pattern for pattern, _ in self.matchers()]
        files = FilePool()
        if not patterns:
            return files
        for file in walk_files(root):
            if any(pattern.matches(file, root) for pattern in patterns):
                files.add(file)
        return files

    def dependencies(self) -> FilePool:
        """Resolve every dependency and return the files it provides.

        A dependency resolving to a directory contributes every non-directory
        entry below it.

        Raises:
            Any error raised while resolving a dependency
        """
        files = FilePool()
        for mod in self.modules:
            for dependency in mod.dependency_set:
                resolved = dependency.file
                if resolved.is_dir():
                    files.update(walk_files(resolved))
                else:
                    files.add(resolved)
        return files

    def all(self, root: Optional[Path] = None) -> FilePool:
        """Union of sources() and dependencies()."""
        files = FilePool()
        files.update(self.sources(root))
        files.update(self.dependencies())
        return files


class Module(JoinedModules):
    """A named group of source matchers and dependencies.

    Attributes:
        name: Module name, used in error messages
        source_set: Registered (pattern, handler) pairs
        dependency_set: Declared dependencies
    """

    def __init__(
        self,
        name: str,
        source_set: Iterable[MatcherPair] = (),
        dependency_set: Iterable[Dependency] = (),
    ) -> None:
        self._name = name
        self._source_set = tuple(source_set)
        self._dependency_set = tuple(dependency_set)

    @property
    def name(self) -> str:
        return self._name

    @property
    def source_set(self) -> tuple[MatcherPair, ...]:
        return self._source_set

    @property
    def dependency_set(self) -> tuple[Dependency, ...]:
        return self._dependency_set

    @property
    def modules(self) -> tuple["Module", ...]:
        return (self,)

    def __repr__(self) -> str:
        return f"Module({self._name!r})"


class ModuleGroup(JoinedModules):
    """Composite produced by concatenating module lists."""

    def __init__(self, modules: Iterable[Module]) -> None:
        self._modules = tuple(modules)

    @property
    def modules(self) -> tuple[Module, ...]:
        return self._modules

    def __repr__(self) -> str:
        return f"ModuleGroup({[m.name for m in self._modules]!r})"


def join(*groups: JoinedModules) -> ModuleGroup:
    """Concatenate any number of modules or groups."""
    modules: tuple[Module, ...] = ()
    for group in groups:
        modules += group.modules
    return ModuleGroup(modules)


def module(
    block: Optional[Callable[[ModuleBuilder], None]] = None,
    *,
    name: Optional[str] = None,
    sources: Optional[Callable[[SourcesBuilder], None]] = None,
    dependencies: Optional[Callable[[DependenciesBuilder], None]] = None,
) -> Module:
    """Define a module.

    Args:
        block: Optional callable receiving a ModuleBuilder (may set name)
        name: Module name, alternative to setting it in block
        sources: Optional callable registering source matchers
        dependencies: Optional callable registering dependencies

    Returns:
        The immutable Module

    Raises:
        ConfigurationError: If no name is given
    """
    settings = ModuleBuilder()
    settings.name = name
    if block is not None:
        block(settings)
    settings.close()
    if not settings.name:
        raise ConfigurationError("Module name must be specified")

    source_builder = SourcesBuilder()
    if sources is not None:
        sources(source_builder)
    source_builder.close()

    dependency_builder = DependenciesBuilder(settings.name)
    if dependencies is not None:
        dependencies(dependency_builder)
    dependency_builder.close()

    mod = Module(settings.name, source_builder.build(), dependency_builder.build())
    logger.debug(f"Defined module {mod.name}: {len(mod.source_set)} matchers, {len(mod.dependency_set)} dependencies")
    return mod
