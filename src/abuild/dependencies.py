"""External dependency artifacts.

A Dependency pairs a FileSource (how to obtain the artifact) with a descriptive
DependencyType tag. The artifact is resolved lazily: the first read of
Dependency.file runs the source, later reads reuse the cached result.

Sources:
    DownloadSource: fetch the URL, the artifact is the downloaded file
    ArchiveSource:  fetch the URL, extract it, the artifact is the directory
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Generic, Optional, TypeVar

from . import fetch as _fetch

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNSET = object()


class Once(Generic[T]):
    """Compute a value once and cache the outcome.

    The factory runs on the first get(). Its return value is cached; if it
    raises, the exception is cached instead and re-raised by every later get().
    """

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory = factory
        self._value: object = _UNSET
        self._error: Optional[BaseException] = None
        self._lock = threading.Lock()

    @property
    def done(self) -> bool:
        return self._value is not _UNSET or self._error is not None

    def get(self) -> T:
        with self._lock:
            if not self.done:
                try:
                    self._value = self._factory()
                except Exception as e:
                    self._error = e
            if self._error is not None:
                raise self._error
            return self._value  # type: ignore[return-value]


@dataclass(frozen=True)
class DependencyType:
    """Descriptive capability tag of a dependency (e.g. "headers", "staticLib").

    The core attaches no behaviour to it; build descriptions may filter on it.
    """

    name: str

    def __str__(self) -> str:
        return self.name


def dependency_type(name: str) -> DependencyType:
    return DependencyType(name)


NONE_TYPE = DependencyType("none")


class FileSource(ABC):
    """Description of how to obtain an external artifact.

    get() does the work every time it is called; memoisation lives on the
    Dependency that owns the source.

    Attributes:
        url: Address of the artifact
        module: Name of the module that declared the source, if known
    """

    def __init__(self, url: str, module: Optional[str] = None) -> None:
        self.url = url
        self.module = module

    @abstractmethod
    def get(self) -> Path:
        """Obtain the artifact and return its location."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.url!r})"


class DownloadSource(FileSource):
    """Plain download: the artifact is the fetched file."""

    def get(self) -> Path:
        return _fetch.fetch(self.url)


class ArchiveSource(FileSource):
    """Download and extract: the artifact is the extracted directory.

    The intermediate download is deleted once extraction finishes.
    """

    def get(self) -> Path:
        downloaded = _fetch.fetch(self.url)
        try:
            return _fetch.extract(downloaded)
        finally:
            downloaded.unlink(missing_ok=True)


@dataclass(eq=False)
class Dependency:
    """An external artifact declared by a module.

    Attributes:
        source: How to obtain the artifact
        type: Descriptive tag
    """

    source: FileSource
    type: DependencyType = NONE_TYPE
    _file: Once[Path] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._file = Once(self._resolve)

    def _resolve(self) -> Path:
        logger.info(f"Resolving dependency {self.source.url} ({self.type})")
        return self.source.get()

    @property
    def file(self) -> Path:
        """The resolved artifact, computed on first access.

        Raises:
            Whatever the source raised; a failed resolution is not retried.
        """
        return self._file.get()

    @property
    def resolved(self) -> bool:
        return self._file.done
